from __future__ import annotations

import logging

from formfill.domain.cursor import RowCursor, iter_claims
from formfill.domain.error_codes import ErrorCode
from formfill.infra.logging.setup import logEvent


class MarkUseCase:
    """
    Назначение/ответственность:
        Проходит курсор до конца и пишет заданный статус в каждую строку.

    Поведение:
        - skip_existing=True: строки с уже заполненным статусом не трогаются;
        - неподтверждённая запись учитывается в summary.failed, код возврата 1.
    """

    def __init__(self, status: str, skip_existing: bool = False) -> None:
        self.status = status
        self.skip_existing = skip_existing

    def run(self, cursor: RowCursor, logger: logging.Logger, run_id: str, report) -> int:
        report.meta.first_row = cursor.first_row
        report.meta.last_known_row = cursor.last_known_row
        summary = report.summary

        for record in iter_claims(cursor):
            summary.rows_total += 1
            if self.skip_existing and record.content.status:
                summary.skipped += 1
                logEvent(logger, logging.DEBUG, run_id, "mark", f"Status kept: {record.content.status}", rowNo=record.row_no)
                report.add_item({"row_no": record.row_no, "status": "skipped", "previous": record.content.status})
                continue

            previous = record.content.status
            record.content.status = self.status
            ack = cursor.report_status(record)
            if ack.written:
                summary.written += 1
                logEvent(logger, logging.DEBUG, run_id, "mark", f"Status written: {self.status}", rowNo=record.row_no)
                report.add_item({"row_no": record.row_no, "status": "written", "previous": previous})
            else:
                summary.failed += 1
                report.add_item(
                    {
                        "row_no": record.row_no,
                        "status": "failed",
                        "code": ErrorCode.STATUS_NOT_WRITTEN.value,
                        "error": ack.error,
                    }
                )

        logEvent(
            logger,
            logging.INFO,
            run_id,
            "mark",
            f"Rows marked: total={summary.rows_total} written={summary.written} "
            f"skipped={summary.skipped} failed={summary.failed}",
        )
        return 1 if summary.failed else 0
