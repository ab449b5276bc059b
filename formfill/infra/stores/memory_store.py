from __future__ import annotations

from typing import Any, Iterable, Sequence

from formfill.common.cells import cell_text
from formfill.domain.error_codes import ErrorCode
from formfill.domain.models import WriteAck
from formfill.errors import StoreError


def _check_coordinates(row: int, column: int) -> None:
    if row < 1 or column < 1:
        raise StoreError(
            ErrorCode.CELL_OUT_OF_RANGE,
            f"Cell coordinates are 1-based, got ({row}, {column})",
            row=row,
            column=column,
        )


class InMemoryRowStore:
    """
    Назначение/ответственность:
        RowStore поверх списка строк в памяти. Строка 1 — первый элемент списка.
        Ячейки за пределами сетки читаются как None, запись расширяет сетку.
    """

    def __init__(self, rows: Iterable[Sequence[Any]] | None = None) -> None:
        self._rows: list[list[Any]] = [list(row) for row in rows or []]

    @classmethod
    def from_records(
        cls,
        header: Sequence[str],
        records: Iterable[Sequence[Any]],
    ) -> "InMemoryRowStore":
        return cls([list(header), *records])

    @property
    def rows(self) -> list[list[Any]]:
        return self._rows

    def get_cell(self, row: int, column: int) -> str | None:
        _check_coordinates(row, column)
        if row > len(self._rows):
            return None
        values = self._rows[row - 1]
        if column > len(values):
            return None
        return cell_text(values[column - 1])

    def set_cell(self, row: int, column: int, value: str) -> WriteAck:
        _check_coordinates(row, column)
        while len(self._rows) < row:
            self._rows.append([])
        values = self._rows[row - 1]
        if len(values) < column:
            values.extend([None] * (column - len(values)))
        values[column - 1] = value
        return WriteAck(row_no=row, column=column, written=True)
