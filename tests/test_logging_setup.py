import logging
from concurrent.futures import ThreadPoolExecutor

import pytest

from formfill.domain.cursor import RowCursor, iter_claims
from formfill.domain.models import HEADER
from formfill.infra.logging.setup import closeCommandLogger, createCommandLogger, logEvent, mapLogLevel
from formfill.infra.stores.memory_store import InMemoryRowStore


def _read_log(path):
    with open(path, "r", encoding="utf-8") as f:
        return f.read().splitlines()


def test_command_events_have_no_row(tmp_path):
    logger, path = createCommandLogger("inspect", str(tmp_path), "run-1", "INFO")
    logEvent(logger, logging.INFO, "run-1", "core", "Command started")
    logger.info("plain message")
    closeCommandLogger(logger)

    lines = _read_log(path)
    assert "runId=run-1 comp=core worker=MainThread row=- msg=Command started" in lines[0]
    assert "comp=core" in lines[1] and "row=- msg=plain message" in lines[1]


def test_cursor_events_carry_worker_and_row(tmp_path):
    logger, path = createCommandLogger("mark", str(tmp_path), "run-2", "INFO")
    store = InMemoryRowStore.from_records(HEADER, [["1"], ["2"], ["3"]])
    cursor = RowCursor.attach(store, start_row=1, logger=logger, run_id="run-2")

    with ThreadPoolExecutor(max_workers=2, thread_name_prefix="bot") as pool:
        list(pool.map(lambda _: list(iter_claims(cursor)), range(2)))
    closeCommandLogger(logger)

    end_lines = [line for line in _read_log(path) if "End of data" in line]
    assert len(end_lines) == 1
    assert "comp=cursor worker=bot_" in end_lines[0]
    assert "row=5 msg=End of data at row 5" in end_lines[0]


def test_log_level_filters_debug(tmp_path):
    logger, path = createCommandLogger("inspect", str(tmp_path), "run-3", "WARN")
    logEvent(logger, logging.INFO, "run-3", "core", "hidden", rowNo=2)
    logEvent(logger, logging.WARNING, "run-3", "cursor", "shown", rowNo=2)
    closeCommandLogger(logger)

    lines = _read_log(path)
    assert len(lines) == 1
    assert "row=2 msg=shown" in lines[0]


def test_map_log_level_rejects_unknown():
    assert mapLogLevel(" warn ") == logging.WARNING
    with pytest.raises(ValueError):
        mapLogLevel("TRACE")
