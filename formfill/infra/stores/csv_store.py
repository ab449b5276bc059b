from __future__ import annotations

import csv
from pathlib import Path

from formfill.domain.error_codes import ErrorCode
from formfill.domain.models import WriteAck
from formfill.errors import StoreError
from formfill.infra.stores.memory_store import InMemoryRowStore


class CsvRowStore:
    """
    Назначение/ответственность:
        RowStore поверх CSV-файла: load() читает лист целиком в память,
        save() записывает его обратно. Между ними все обращения идут в память.

    Взаимодействия:
        Синхронизация доступа — забота RowCursor, сам store не блокирует.
    """

    def __init__(self, path: str, delimiter: str = ",", encoding: str = "utf-8-sig") -> None:
        self.path = path
        self.delimiter = delimiter
        self.encoding = encoding
        self._grid: InMemoryRowStore | None = None

    def load(self) -> "CsvRowStore":
        """
        Назначение:
            Читает CSV целиком в память.

        Поведение:
            - файла нет / нет доступа -> OSError;
            - неверная кодировка или битый CSV -> StoreError(SHEET_UNREADABLE).
        """
        with open(self.path, "r", encoding=self.encoding, newline="") as f:
            reader = csv.reader(f, delimiter=self.delimiter)
            try:
                self._grid = InMemoryRowStore(reader)
            except (UnicodeDecodeError, csv.Error) as exc:
                raise StoreError(
                    ErrorCode.SHEET_UNREADABLE,
                    f"Cannot read sheet {self.path}: {exc}",
                    path=self.path,
                    encoding=self.encoding,
                ) from exc
        return self

    def save(self, path: str | None = None) -> str:
        """
        Назначение:
            Записывает лист в CSV (по умолчанию в исходный файл).
            Строки дополняются пустыми ячейками до общей ширины.

        Выходные данные:
            str
                Путь к записанному файлу.
        """
        grid = self._require_loaded()
        target = Path(path or self.path)
        width = max((len(row) for row in grid.rows), default=0)
        with open(target, "w", encoding=self.encoding, newline="") as f:
            writer = csv.writer(f, delimiter=self.delimiter)
            for row in grid.rows:
                padded = ["" if value is None else value for value in row]
                padded.extend([""] * (width - len(padded)))
                writer.writerow(padded)
        return str(target)

    def get_cell(self, row: int, column: int) -> str | None:
        return self._require_loaded().get_cell(row, column)

    def set_cell(self, row: int, column: int, value: str) -> WriteAck:
        return self._require_loaded().set_cell(row, column, value)

    def _require_loaded(self) -> InMemoryRowStore:
        if self._grid is None:
            raise StoreError(
                ErrorCode.STORE_NOT_LOADED,
                f"CSV store is not loaded: {self.path}",
                path=self.path,
            )
        return self._grid
