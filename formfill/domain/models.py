from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum


class FormColumn(IntEnum):
    """
    Назначение:
        Фиксированная раскладка колонок листа (1-based, как в строке заголовка).
        STATUS — единственная колонка, в которую пишет курсор.
    """

    NUMBER = 1
    FIRST_NAME = 2
    LAST_NAME = 3
    USER_NAME = 4
    ADDRESS = 5
    COUNTRY = 6
    STATE = 7
    ZIP = 8
    NAME_ON_CARD = 9
    CARD_NUMBER = 10
    EXPIRATION_DATE = 11
    CVV = 12
    STATUS = 13


HEADER = [
    "Number",
    "First Name",
    "Last Name",
    "User Name",
    "Address",
    "Country",
    "State",
    "Zip",
    "Name on Card",
    "Credit Card Number",
    "Expiration date",
    "CVV",
    "Bot Status",
]


@dataclass
class FormRow:
    """
    Назначение:
        Содержимое одной строки листа: по полю на колонку FormColumn.

    Инварианты:
        - строка "присутствует" только если number не пустой;
        - status изменяется воркером перед RowCursor.report_status.
    """

    number: str | None
    first_name: str | None = None
    last_name: str | None = None
    user_name: str | None = None
    address: str | None = None
    country: str | None = None
    state: str | None = None
    zip: str | None = None
    name_on_card: str | None = None
    card_number: str | None = None
    expiration_date: str | None = None
    cvv: str | None = None
    status: str | None = None

    @property
    def present(self) -> bool:
        return bool(self.number)


@dataclass
class ClaimedRow:
    """
    Назначение:
        Строка, выданная курсором ровно одному воркеру: номер строки листа + содержимое.
    """

    row_no: int
    content: FormRow


@dataclass(frozen=True)
class CellRead:
    """
    Назначение:
        Явный результат чтения ячейки. Чтение никогда не бросает исключение:
        сбой хранилища превращается в value=None с описанием в fault.
    """

    value: str | None
    fault: str | None = None

    @property
    def absent(self) -> bool:
        return self.value is None


@dataclass(frozen=True)
class WriteAck:
    """
    Назначение:
        Подтверждение записи ячейки. Вызывающий может его проигнорировать,
        но это решение видно в сигнатуре.
    """

    row_no: int
    column: int
    written: bool
    error: str | None = None
