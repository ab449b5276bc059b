from __future__ import annotations

from typing import Protocol, runtime_checkable

from formfill.domain.models import WriteAck


@runtime_checkable
class RowStore(Protocol):
    """
    Назначение/ответственность:
        Табличный источник с доступом к ячейкам по (row, column), оба 1-based.
        Жизненный цикл (open/save) и формат файла — забота реализации.
    Взаимодействия:
        Единственный потребитель во время прогона — RowCursor; прямой доступ
        к хранилищу в обход курсора нарушает его гарантии.
    """

    def get_cell(self, row: int, column: int) -> str | None:
        """
        Контракт:
            Возвращает текст ячейки или None для пустой/отсутствующей ячейки.
            Для просто пустой ячейки не бросает исключение.
        """
        ...

    def set_cell(self, row: int, column: int, value: str) -> WriteAck:
        """
        Контракт:
            Записывает текст в ячейку и возвращает подтверждение.
            Может бросить исключение — оно не перехватывается курсором.
        """
        ...
