from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Iterator

from formfill.common.cells import cell_text
from formfill.domain.models import CellRead, ClaimedRow, FormColumn, FormRow, WriteAck
from formfill.domain.ports.row_store import RowStore

_FIELD_COLUMNS = (
    ("number", FormColumn.NUMBER),
    ("first_name", FormColumn.FIRST_NAME),
    ("last_name", FormColumn.LAST_NAME),
    ("user_name", FormColumn.USER_NAME),
    ("address", FormColumn.ADDRESS),
    ("country", FormColumn.COUNTRY),
    ("state", FormColumn.STATE),
    ("zip", FormColumn.ZIP),
    ("name_on_card", FormColumn.NAME_ON_CARD),
    ("card_number", FormColumn.CARD_NUMBER),
    ("expiration_date", FormColumn.EXPIRATION_DATE),
    ("cvv", FormColumn.CVV),
    ("status", FormColumn.STATUS),
)


@dataclass
class _CursorState:
    first_row: int
    last_known_row: int
    last_issued_row: int
    last_returned_row: int
    end_reached: bool = False


class RowCursor:
    """
    Назначение/ответственность:
        Раздаёт строки листа конкурентным воркерам: каждая строка выдаётся ровно
        один раз, конец данных фиксируется необратимо, статус пишется обратно
        под той же блокировкой.

    Инварианты/гарантии:
        - номера выдаваемых строк строго возрастают, повторов нет;
        - после end_reached любые claim_next_row возвращают None без чтения хранилища;
        - пустой номер в середине данных неотличим от конца данных.

    Взаимодействия:
        RowStore передаётся снаружи; курсор не открывает и не сохраняет хранилище.
    """

    def __init__(
        self,
        store: RowStore,
        start_row: int,
        logger: logging.Logger | None = None,
        run_id: str | None = None,
    ) -> None:
        if start_row < 1:
            raise ValueError(f"start_row must be >= 1, got {start_row}")
        self._store = store
        self._lock = threading.Lock()
        self._logger = logger or logging.getLogger("formfill.cursor")
        self._run_id = run_id or "-"
        last_known_row = self._scan_last_present_row(start_row)
        self._state = _CursorState(
            first_row=start_row,
            last_known_row=last_known_row,
            last_issued_row=start_row,
            last_returned_row=start_row,
        )
        self._log(
            logging.INFO,
            f"Cursor attached: first_row={start_row} last_known_row={last_known_row}",
        )

    @classmethod
    def attach(
        cls,
        store: RowStore,
        start_row: int,
        logger: logging.Logger | None = None,
        run_id: str | None = None,
    ) -> "RowCursor":
        return cls(store, start_row, logger=logger, run_id=run_id)

    @property
    def first_row(self) -> int:
        return self._state.first_row

    @property
    def last_known_row(self) -> int:
        """
        Последняя непрерывно заполненная строка на момент attach.
        Только подсказка: при выдаче строк не перепроверяется.
        """
        return self._state.last_known_row

    @property
    def exhausted(self) -> bool:
        with self._lock:
            return self._state.end_reached

    def claim_next_row(self) -> ClaimedRow | None:
        """
        Назначение:
            Атомарно резервирует следующую строку.

        Выходные данные:
            ClaimedRow | None
                None — конец данных (в том числе пустой номер в середине листа).
        """
        with self._lock:
            if self._state.end_reached:
                return None
            self._state.last_issued_row += 1
            row_no = self._state.last_issued_row
            content = self._read_row(row_no)
            if not content.present:
                self._state.end_reached = True
                self._log(logging.INFO, f"End of data at row {row_no}", row_no=row_no)
                return None
            self._state.last_returned_row = row_no
            return ClaimedRow(row_no=row_no, content=content)

    def report_status(self, record: ClaimedRow) -> WriteAck:
        """
        Назначение:
            Пишет record.content.status в колонку STATUS строки record.row_no.

        Поведение:
            - запись не выданной курсором строки -> ValueError;
            - исключения хранилища не перехватываются;
            - неподтверждённая запись логируется и возвращается как есть.
        """
        value = record.content.status or ""
        with self._lock:
            # строка, на которой обнаружен конец данных, воркерам не выдавалась
            if not self._state.first_row < record.row_no <= self._state.last_returned_row:
                raise ValueError(f"Row {record.row_no} was not claimed from this cursor")
            ack = self._store.set_cell(record.row_no, FormColumn.STATUS, value)
        if not ack.written:
            self._log(
                logging.WARNING,
                f"Status not written: row={record.row_no} error={ack.error}",
                row_no=record.row_no,
            )
        return ack

    def _scan_last_present_row(self, start_row: int) -> int:
        row_no = start_row
        while not self._read_cell(row_no + 1, FormColumn.NUMBER).absent:
            row_no += 1
        return row_no

    def _read_row(self, row_no: int) -> FormRow:
        values = {name: self._read_cell(row_no, column).value for name, column in _FIELD_COLUMNS}
        return FormRow(**values)

    def _read_cell(self, row_no: int, column: FormColumn) -> CellRead:
        try:
            raw = self._store.get_cell(row_no, column)
        except Exception as exc:
            # любой сбой чтения ячейки = отсутствующее поле
            self._log(
                logging.DEBUG,
                f"Cell read fault treated as absent: row={row_no} col={column.name} error={exc}",
                row_no=row_no,
            )
            return CellRead(value=None, fault=str(exc) or type(exc).__name__)
        return CellRead(value=cell_text(raw))

    def _log(self, level: int, message: str, row_no: int | None = None) -> None:
        extra = {"runId": self._run_id, "component": "cursor"}
        if row_no is not None:
            extra["rowNo"] = row_no
        self._logger.log(level, message, extra=extra)


def iter_claims(cursor: RowCursor) -> Iterator[ClaimedRow]:
    """
    Назначение:
        Итератор по строкам курсора до конца данных.
        Каждый воркер может держать свой итератор над общим курсором.
    """
    while True:
        record = cursor.claim_next_row()
        if record is None:
            return
        yield record
