from __future__ import annotations

import json
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

from formfill.common.time import getNowIso


@dataclass
class ReportMeta:
    """
    Назначение:
        Метаданные запуска команды.
    """

    run_id: str
    command: str
    started_at: str
    finished_at: str | None = None
    duration_ms: int | None = None
    csv_path: str | None = None
    first_row: int | None = None
    last_known_row: int | None = None
    log_file: str | None = None
    report_dir: str | None = None
    items_limit: int | None = None
    items_truncated: bool = False
    config_sources: list[str] = field(default_factory=list)


@dataclass
class ReportSummary:
    rows_total: int = 0
    written: int = 0
    skipped: int = 0
    failed: int = 0
    status_counts: dict[str, int] = field(default_factory=dict)


@dataclass
class Report:
    """
    Назначение:
        Корневой объект отчёта: meta + summary + items (по строкам листа).
    """

    meta: ReportMeta
    summary: ReportSummary
    items: list[dict] = field(default_factory=list)

    def add_item(self, item: dict) -> None:
        """
        Добавляет item, пока не достигнут meta.items_limit;
        дальше только выставляет items_truncated.
        """
        limit = self.meta.items_limit
        if limit is not None and len(self.items) >= limit:
            self.meta.items_truncated = True
            return
        self.items.append(item)


def createEmptyReport(runId: str, command: str, configSources: list[str]) -> Report:
    meta = ReportMeta(
        run_id=runId,
        command=command,
        started_at=getNowIso(),
        config_sources=list(configSources or []),
    )
    return Report(meta=meta, summary=ReportSummary())


def finalizeReport(report: Report, durationMs: int, logFile: str | None, reportDir: str) -> None:
    """
    Назначение:
        Финализирует отчёт: время завершения, длительность, пути.
    """
    report.meta.finished_at = getNowIso()
    report.meta.duration_ms = durationMs
    report.meta.log_file = logFile
    report.meta.report_dir = reportDir


def writeReportJson(report: Report, reportDir: str, fileBaseName: str) -> str:
    """
    Назначение:
        Записывает отчёт в <reportDir>/<fileBaseName>.json.

    Выходные данные:
        str
            Путь к файлу отчёта.
    """
    Path(reportDir).mkdir(parents=True, exist_ok=True)
    reportPath = str(Path(reportDir) / f"{fileBaseName}.json")

    data: dict[str, Any] = {
        "meta": asdict(report.meta),
        "summary": asdict(report.summary),
        "items": report.items,
    }

    with open(reportPath, "w", encoding="utf-8") as f:
        json.dump(data, f, ensure_ascii=False, indent=2)

    return reportPath
