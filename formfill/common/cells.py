from __future__ import annotations

from typing import Any


def cell_text(value: Any) -> str | None:
    """
    Назначение:
        Приводит значение ячейки к тексту.

    Правила:
        - None и "" -> None (ячейка отсутствует)
        - целые float (1.0) -> "1", как их показывает табличный редактор
        - остальное -> str(value), пробелы не обрезаются
    """
    if value is None:
        return None
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    text = value if isinstance(value, str) else str(value)
    if text == "":
        return None
    return text
