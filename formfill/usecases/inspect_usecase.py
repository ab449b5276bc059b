from __future__ import annotations

import logging
from collections import Counter

from formfill.domain.cursor import RowCursor, iter_claims
from formfill.infra.logging.setup import logEvent


class InspectUseCase:
    """
    Назначение/ответственность:
        Read-only проход по листу: считает строки и значения статуса.
        Ячейки не записываются.
    """

    def run(self, cursor: RowCursor, logger: logging.Logger, run_id: str, report) -> int:
        report.meta.first_row = cursor.first_row
        report.meta.last_known_row = cursor.last_known_row

        status_counts: Counter[str] = Counter()
        rows_total = 0
        for record in iter_claims(cursor):
            rows_total += 1
            status_counts[record.content.status or ""] += 1
            report.add_item({"row_no": record.row_no, "number": record.content.number, "status": record.content.status})

        report.summary.rows_total = rows_total
        report.summary.status_counts = dict(sorted(status_counts.items()))

        logEvent(logger, logging.INFO, run_id, "inspect", f"Rows inspected: {rows_total}")
        return 0
