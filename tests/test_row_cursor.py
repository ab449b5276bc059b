import logging

import pytest

from formfill.domain.cursor import RowCursor, iter_claims
from formfill.domain.models import HEADER, ClaimedRow, FormColumn, FormRow, WriteAck
from formfill.infra.stores.memory_store import InMemoryRowStore


def _record(number, address="Main st. 1", status=None):
    return [number, "John", "Doe", "jdoe", address, "US", "CA", "90001", "JOHN DOE", "4111111111111111", "12/30", "123", status]


def _sheet(count: int) -> InMemoryRowStore:
    return InMemoryRowStore.from_records(HEADER, [_record(str(i)) for i in range(1, count + 1)])


class CountingStore:
    def __init__(self, inner):
        self.inner = inner
        self.reads = 0
        self.writes = 0

    def get_cell(self, row, column):
        self.reads += 1
        return self.inner.get_cell(row, column)

    def set_cell(self, row, column, value):
        self.writes += 1
        return self.inner.set_cell(row, column, value)


class FaultyCellStore(CountingStore):
    def __init__(self, inner, faulty: set[tuple[int, int]]):
        super().__init__(inner)
        self.faulty = faulty

    def get_cell(self, row, column):
        if (row, int(column)) in self.faulty:
            raise RuntimeError(f"cannot convert cell {row}:{column} to text")
        return super().get_cell(row, column)


def test_sequential_claims_return_rows_in_order_then_end():
    cursor = RowCursor.attach(_sheet(4), start_row=1)

    claimed = [cursor.claim_next_row() for _ in range(4)]

    assert [c.row_no for c in claimed] == [2, 3, 4, 5]
    assert [c.content.number for c in claimed] == ["1", "2", "3", "4"]
    assert cursor.claim_next_row() is None
    assert cursor.exhausted


def test_claim_parses_all_fields():
    cursor = RowCursor(_sheet(1), start_row=1)

    claimed = cursor.claim_next_row()

    assert claimed == ClaimedRow(
        row_no=2,
        content=FormRow(
            number="1",
            first_name="John",
            last_name="Doe",
            user_name="jdoe",
            address="Main st. 1",
            country="US",
            state="CA",
            zip="90001",
            name_on_card="JOHN DOE",
            card_number="4111111111111111",
            expiration_date="12/30",
            cvv="123",
            status=None,
        ),
    )


def test_attach_records_bounds():
    cursor = RowCursor.attach(_sheet(4), start_row=1)

    assert cursor.first_row == 1
    assert cursor.last_known_row == 5
    assert not cursor.exhausted


def test_attach_on_empty_sheet():
    cursor = RowCursor.attach(InMemoryRowStore([HEADER]), start_row=1)

    assert cursor.last_known_row == 1
    assert cursor.claim_next_row() is None


def test_attach_rejects_zero_start_row():
    with pytest.raises(ValueError):
        RowCursor.attach(_sheet(1), start_row=0)


def test_custom_start_row_skips_leading_rows():
    store = InMemoryRowStore([["title"], HEADER, _record("10"), _record("11")])
    cursor = RowCursor.attach(store, start_row=2)

    assert [c.row_no for c in iter_claims(cursor)] == [3, 4]


def test_exhausted_cursor_never_reads_store_again():
    store = CountingStore(_sheet(2))
    cursor = RowCursor.attach(store, start_row=1)
    list(iter_claims(cursor))
    reads = store.reads

    for _ in range(5):
        assert cursor.claim_next_row() is None

    assert store.reads == reads


def test_missing_address_keeps_cursor_active():
    store = InMemoryRowStore.from_records(HEADER, [_record("1", address=None), _record("2")])
    cursor = RowCursor.attach(store, start_row=1)

    first = cursor.claim_next_row()

    assert first.content.address is None
    assert not cursor.exhausted
    assert cursor.claim_next_row().content.number == "2"


def test_blank_number_mid_sheet_ends_iteration():
    store = InMemoryRowStore.from_records(HEADER, [_record("1"), _record(""), _record("3")])
    cursor = RowCursor.attach(store, start_row=1)

    assert [c.row_no for c in iter_claims(cursor)] == [2]
    assert cursor.last_known_row == 2
    assert cursor.claim_next_row() is None


def test_rows_appended_after_attach_are_claimed():
    store = _sheet(1)
    cursor = RowCursor.attach(store, start_row=1)
    store.rows.append(_record("2"))

    assert [c.content.number for c in iter_claims(cursor)] == ["1", "2"]
    assert cursor.last_known_row == 2


def test_numeric_cells_are_read_as_text():
    store = InMemoryRowStore([HEADER, [7.0, "Ann", None, None, None, None, None, 90001.0]])
    cursor = RowCursor.attach(store, start_row=1)

    claimed = cursor.claim_next_row()

    assert claimed.content.number == "7"
    assert claimed.content.zip == "90001"


def test_cell_read_fault_is_treated_as_absent(caplog):
    store = FaultyCellStore(_sheet(2), faulty={(2, int(FormColumn.CVV))})
    cursor = RowCursor.attach(store, start_row=1)

    with caplog.at_level(logging.DEBUG, logger="formfill.cursor"):
        claimed = cursor.claim_next_row()

    assert claimed.content.cvv is None
    assert claimed.content.number == "1"
    assert not cursor.exhausted
    assert "Cell read fault treated as absent: row=2 col=CVV" in caplog.text


def test_cell_read_fault_on_number_ends_iteration():
    store = FaultyCellStore(_sheet(3), faulty={(3, int(FormColumn.NUMBER))})
    cursor = RowCursor.attach(store, start_row=1)

    assert [c.row_no for c in iter_claims(cursor)] == [2]
    assert cursor.exhausted


def test_report_status_is_visible_in_store():
    store = _sheet(2)
    cursor = RowCursor.attach(store, start_row=1)
    claimed = cursor.claim_next_row()
    claimed.content.status = "OK"

    ack = cursor.report_status(claimed)

    assert ack == WriteAck(row_no=2, column=FormColumn.STATUS, written=True)
    assert store.get_cell(2, FormColumn.STATUS) == "OK"
    assert store.get_cell(3, FormColumn.STATUS) is None


def test_report_status_rejects_unclaimed_rows():
    cursor = RowCursor.attach(_sheet(3), start_row=1)
    cursor.claim_next_row()

    with pytest.raises(ValueError):
        cursor.report_status(ClaimedRow(row_no=3, content=FormRow(number="2", status="OK")))
    with pytest.raises(ValueError):
        cursor.report_status(ClaimedRow(row_no=1, content=FormRow(number="Number", status="OK")))


def test_report_status_rejects_row_that_ended_data():
    store = InMemoryRowStore([HEADER, ["1"]])
    cursor = RowCursor.attach(store, start_row=1)
    list(iter_claims(cursor))

    with pytest.raises(ValueError):
        cursor.report_status(ClaimedRow(row_no=3, content=FormRow(number=None, status="X")))

    assert store.get_cell(3, FormColumn.STATUS) is None
    assert len(store.rows) == 2


def test_report_status_write_error_propagates():
    class ReadOnlyStore(CountingStore):
        def set_cell(self, row, column, value):
            raise PermissionError("sheet is read-only")

    cursor = RowCursor.attach(ReadOnlyStore(_sheet(1)), start_row=1)
    claimed = cursor.claim_next_row()
    claimed.content.status = "OK"

    with pytest.raises(PermissionError):
        cursor.report_status(claimed)


def test_report_status_returns_unwritten_ack(caplog):
    class RejectingStore(CountingStore):
        def set_cell(self, row, column, value):
            return WriteAck(row_no=row, column=column, written=False, error="locked")

    cursor = RowCursor.attach(RejectingStore(_sheet(1)), start_row=1)
    claimed = cursor.claim_next_row()

    with caplog.at_level(logging.WARNING, logger="formfill.cursor"):
        ack = cursor.report_status(claimed)

    assert not ack.written
    assert ack.error == "locked"
    assert "Status not written: row=2 error=locked" in caplog.text


def test_report_status_writes_empty_text_for_missing_status():
    store = InMemoryRowStore.from_records(HEADER, [_record("1", status="OLD")])
    cursor = RowCursor.attach(store, start_row=1)
    claimed = cursor.claim_next_row()
    claimed.content.status = None

    cursor.report_status(claimed)

    assert store.rows[1][FormColumn.STATUS - 1] == ""
    assert store.get_cell(2, FormColumn.STATUS) is None
