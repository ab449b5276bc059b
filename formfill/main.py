from __future__ import annotations

import logging
import sys
import time
from pathlib import Path

import typer

from formfill.common.run_id import generate_run_id
from formfill.common.time import getDurationMs
from formfill.config import Settings, loadSettings
from formfill.domain.cursor import RowCursor
from formfill.errors import AppError
from formfill.infra.artifacts.report_writer import createEmptyReport, finalizeReport, writeReportJson
from formfill.infra.logging.setup import (
    StdStreamToLogger,
    TeeStream,
    closeCommandLogger,
    createCommandLogger,
    logEvent,
)
from formfill.infra.stores.csv_store import CsvRowStore
from formfill.usecases.inspect_usecase import InspectUseCase
from formfill.usecases.mark_usecase import MarkUseCase

app = typer.Typer(no_args_is_help=True, add_completion=False)


def ensureDir(path: str) -> None:
    Path(path).mkdir(parents=True, exist_ok=True)


def requireCsv(csvPath: str | None) -> None:
    """
    Назначение:
        Проверка наличия CSV-файла листа.

    Поведение:
        - Если csvPath не задан или файл не существует — typer.Exit(code=2).
    """
    if not csvPath:
        typer.echo("ERROR: --csv is required", err=True)
        raise typer.Exit(code=2)

    p = Path(csvPath)
    if not p.exists() or not p.is_file():
        typer.echo(f"ERROR: CSV file not found: {csvPath}", err=True)
        raise typer.Exit(code=2)


def printRunHeader(runId: str, command: str, settings: Settings, sources: list[str]) -> None:
    typer.echo(
        f"run_id={runId} command={command} start_row={settings.start_row} "
        f"log_level={settings.log_level} sources={sources}"
    )


def loadSheet(logger: logging.Logger, runId: str, settings: Settings, csvPath: str) -> CsvRowStore | None:
    """
    Назначение:
        Открывает CSV-лист с настройками запуска.

    Поведение:
        - ошибки чтения (нет файла, неизвестная или неверная кодировка, битый CSV)
          пишутся в лог и stderr, возвращается None — вызывающий завершает команду с кодом 2.
    """
    store = CsvRowStore(csvPath, delimiter=settings.csv_delimiter, encoding=settings.csv_encoding)
    try:
        return store.load()
    except AppError as exc:
        logEvent(logger, logging.ERROR, runId, exc.category, f"{exc.code}: {exc.message}")
        typer.echo(f"ERROR: {exc.message}", err=True)
    except (OSError, LookupError) as exc:
        logEvent(logger, logging.ERROR, runId, "csv", f"CSV read error: {exc}")
        typer.echo(f"ERROR: CSV read error: {exc}", err=True)
    return None


def runWithReport(
    ctx: typer.Context,
    commandName: str,
    csvPath: str | None,
    runner,
) -> None:
    """
    Назначение:
        Унифицированная обвязка выполнения команд:
        - создаёт логгер + файл лога
        - создаёт report.json skeleton
        - проверяет CSV
        - перенаправляет stdout/stderr в лог (tee)
        - гарантирует запись отчёта в finally

    Входные данные:
        runner: Callable[[logging.Logger, Report], int]
            Тело команды, возвращает exit code.
    """
    runId = ctx.obj["runId"]
    settings: Settings = ctx.obj["settings"]
    sources = ctx.obj["sources"]

    startMonotonic = time.monotonic()

    logger, logFilePath = createCommandLogger(
        commandName=commandName,
        logDir=settings.log_dir,
        runId=runId,
        logLevel=settings.log_level,
    )

    report = createEmptyReport(runId=runId, command=commandName, configSources=sources)
    report.meta.csv_path = csvPath
    report.meta.items_limit = settings.report_items_limit

    originalStdout = sys.stdout
    originalStderr = sys.stderr

    sys.stdout = TeeStream(originalStdout, StdStreamToLogger(logger, logging.INFO, runId, "stdout"))
    sys.stderr = TeeStream(originalStderr, StdStreamToLogger(logger, logging.ERROR, runId, "stderr"))

    exitCode: int | None = None

    try:
        logEvent(logger, logging.INFO, runId, "core", "Command started")
        printRunHeader(runId, commandName, settings, sources)

        try:
            requireCsv(csvPath)
        except typer.Exit:
            logEvent(logger, logging.ERROR, runId, "csv", "CSV is missing or not accessible")
            exitCode = 2
            return

        exitCode = runner(logger, report)

    finally:
        durationMs = getDurationMs(startMonotonic, time.monotonic())
        finalizeReport(
            report=report,
            durationMs=durationMs,
            logFile=logFilePath,
            reportDir=settings.report_dir,
        )
        reportPath = writeReportJson(report, settings.report_dir, f"report_{commandName}_{runId}")
        logEvent(logger, logging.INFO, runId, "report", f"Report written: {reportPath}")

        sys.stdout.flush()
        sys.stderr.flush()
        sys.stdout = originalStdout
        sys.stderr = originalStderr
        closeCommandLogger(logger)

        if exitCode is not None:
            raise typer.Exit(code=exitCode)


def runInspectCommand(ctx: typer.Context, csvPath: str | None) -> None:
    runId = ctx.obj["runId"]
    settings: Settings = ctx.obj["settings"]

    def execute(logger, report) -> int:
        store = loadSheet(logger, runId, settings, csvPath)
        if store is None:
            return 2

        cursor = RowCursor.attach(store, settings.start_row, logger=logger, run_id=runId)
        exitCode = InspectUseCase().run(cursor, logger=logger, run_id=runId, report=report)

        typer.echo(
            f"first_row={cursor.first_row} last_known_row={cursor.last_known_row} "
            f"rows_total={report.summary.rows_total}"
        )
        for status, count in report.summary.status_counts.items():
            typer.echo(f"status[{status or '<empty>'}]={count}")
        return exitCode

    runWithReport(ctx=ctx, commandName="inspect", csvPath=csvPath, runner=execute)


def runMarkCommand(ctx: typer.Context, csvPath: str | None, status: str, skipExisting: bool) -> None:
    runId = ctx.obj["runId"]
    settings: Settings = ctx.obj["settings"]

    def execute(logger, report) -> int:
        store = loadSheet(logger, runId, settings, csvPath)
        if store is None:
            return 2

        cursor = RowCursor.attach(store, settings.start_row, logger=logger, run_id=runId)
        usecase = MarkUseCase(status=status, skip_existing=skipExisting)
        try:
            exitCode = usecase.run(cursor, logger=logger, run_id=runId, report=report)
            savedPath = store.save()
        except AppError as exc:
            logEvent(logger, logging.ERROR, runId, exc.category, f"{exc.code}: {exc.message}")
            typer.echo(f"ERROR: {exc.message}", err=True)
            return 2
        except OSError as exc:
            logEvent(logger, logging.ERROR, runId, "csv", f"CSV write error: {exc}")
            typer.echo(f"ERROR: CSV write error: {exc}", err=True)
            return 2

        logEvent(logger, logging.INFO, runId, "csv", f"Sheet saved: {savedPath}")
        summary = report.summary
        typer.echo(
            f"rows_total={summary.rows_total} written={summary.written} "
            f"skipped={summary.skipped} failed={summary.failed}"
        )
        return exitCode

    runWithReport(ctx=ctx, commandName="mark", csvPath=csvPath, runner=execute)


@app.callback()
def main(
    ctx: typer.Context,
    config: str | None = typer.Option(None, "--config", help="Path to config.yml"),
    runId: str | None = typer.Option(None, "--run-id", help="Run identifier (UUID). If omitted, generated."),
    logLevel: str | None = typer.Option(None, "--log-level", help="Log level: ERROR|WARN|INFO|DEBUG"),
    logDir: str | None = typer.Option(None, "--log-dir", help="Directory for logs."),
    reportDir: str | None = typer.Option(None, "--report-dir", help="Directory for reports."),
    startRow: int | None = typer.Option(None, "--start-row", min=1, help="Row just before the first data row (header row)."),
    csvDelimiter: str | None = typer.Option(None, "--csv-delimiter", help="CSV delimiter."),
    csvEncoding: str | None = typer.Option(None, "--csv-encoding", help="CSV encoding."),
    reportItemsLimit: int | None = typer.Option(None, "--report-items-limit", min=0, help="Max items in report."),
):
    """
    Назначение:
        Глобальная инициализация CLI:
        - генерирует/принимает run_id
        - загружает настройки (CLI > ENV > config > defaults)
        - создаёт каталоги log/report
        - сохраняет всё в ctx.obj для подкоманд
    """
    if not runId:
        runId = generate_run_id()

    cliOverrides = {
        "log_level": logLevel,
        "log_dir": logDir,
        "report_dir": reportDir,
        "start_row": startRow,
        "csv_delimiter": csvDelimiter,
        "csv_encoding": csvEncoding,
        "report_items_limit": reportItemsLimit,
    }
    try:
        loaded = loadSettings(config_path=config, cli_overrides=cliOverrides)
    except ValueError as exc:
        typer.echo(f"ERROR: {exc}", err=True)
        raise typer.Exit(code=2)

    ensureDir(loaded.settings.log_dir)
    ensureDir(loaded.settings.report_dir)

    ctx.obj = {
        "runId": runId,
        "settings": loaded.settings,
        "sources": loaded.sources_used,
        "configPath": config,
    }


@app.command()
def inspect(
    ctx: typer.Context,
    csv: str | None = typer.Option(None, "--csv", help="Path to sheet CSV"),
):
    runInspectCommand(ctx, csv)


@app.command()
def mark(
    ctx: typer.Context,
    csv: str | None = typer.Option(None, "--csv", help="Path to sheet CSV"),
    status: str = typer.Option(..., "--status", help="Status text written to every row"),
    skipExisting: bool = typer.Option(False, "--skip-existing", help="Keep rows that already have a status"),
):
    runMarkCommand(ctx, csv, status, skipExisting)


if __name__ == "__main__":
    app()
