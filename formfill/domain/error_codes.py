from __future__ import annotations

from enum import Enum


class ErrorCode(str, Enum):
    """
    Назначение:
        Коды ошибок прикладного уровня.
    """

    CELL_OUT_OF_RANGE = "CELL_OUT_OF_RANGE"
    STORE_NOT_LOADED = "STORE_NOT_LOADED"
    SHEET_UNREADABLE = "SHEET_UNREADABLE"
    STATUS_NOT_WRITTEN = "STATUS_NOT_WRITTEN"
