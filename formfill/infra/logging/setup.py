from __future__ import annotations

import logging
from pathlib import Path


class EnsureFieldsFilter(logging.Filter):
    """
    Назначение:
        Дополняет LogRecord полями runId, component и rowNo,
        чтобы форматтер не падал KeyError на записях без extra.

    Входные данные:
        runId: str
        defaultComponent: str
            Компонент по умолчанию, если не задан в extra.

    Поля:
        rowNo — номер строки листа, к которой относится событие;
        "-" для событий уровня команды.
    """

    def __init__(self, runId: str, defaultComponent: str = "core"):
        super().__init__()
        self.runId = runId
        self.defaultComponent = defaultComponent

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "runId"):
            record.runId = self.runId
        if not hasattr(record, "component"):
            record.component = self.defaultComponent
        if not hasattr(record, "rowNo"):
            record.rowNo = "-"
        return True


class StdStreamToLogger:
    """
    Назначение:
        Перехват stdout/stderr и построчная запись в лог.

    Входные данные:
        logger: logging.Logger
        level: int
        runId: str
        component: str
            'stdout' или 'stderr'
    """

    def __init__(self, logger: logging.Logger, level: int, runId: str, component: str):
        self.logger = logger
        self.level = level
        self.runId = runId
        self.component = component
        self.buffer = ""

    def write(self, s: str) -> int:
        if not s:
            return 0
        self.buffer += s
        while "\n" in self.buffer:
            line, self.buffer = self.buffer.split("\n", 1)
            if line.strip():
                logEvent(self.logger, self.level, self.runId, self.component, line.rstrip())
        return len(s)

    def flush(self) -> None:
        if self.buffer.strip():
            logEvent(self.logger, self.level, self.runId, self.component, self.buffer.rstrip())
        self.buffer = ""


class TeeStream:
    """
    Назначение:
        Пишет одновременно в исходный поток и в StdStreamToLogger.
    """

    def __init__(self, primary, secondary):
        self.primary = primary
        self.secondary = secondary

    def write(self, s: str) -> int:
        written = self.primary.write(s)
        self.secondary.write(s)
        return written

    def flush(self) -> None:
        self.primary.flush()
        self.secondary.flush()


# worker — имя потока воркера, row — строка листа ("-" для событий команды)
LOG_FORMAT = (
    "%(asctime)s %(levelname)s runId=%(runId)s comp=%(component)s "
    "worker=%(threadName)s row=%(rowNo)s msg=%(message)s"
)

_LEVELS = {
    "ERROR": logging.ERROR,
    "WARN": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
}


def mapLogLevel(levelName: str) -> int:
    """
    Назначение:
        ERROR|WARN|INFO|DEBUG -> уровень logging.
    """
    value = (levelName or "").strip().upper()
    if value not in _LEVELS:
        raise ValueError(f"Unsupported log level: {levelName}")
    return _LEVELS[value]


def createCommandLogger(commandName: str, logDir: str, runId: str, logLevel: str) -> tuple[logging.Logger, str]:
    """
    Назначение:
        Создаёт логгер команды с файловым обработчиком
        <logDir>/<commandName>_<runId>.log.

    Выходные данные:
        (logger, logFilePath)
    """
    Path(logDir).mkdir(parents=True, exist_ok=True)
    logFilePath = str(Path(logDir) / f"{commandName}_{runId}.log")

    logger = logging.getLogger(f"formfill.{commandName}.{runId}")
    logger.handlers.clear()
    logger.propagate = False

    level = mapLogLevel(logLevel)
    logger.setLevel(level)

    formatter = logging.Formatter(
        fmt=LOG_FORMAT,
        datefmt="%Y-%m-%dT%H:%M:%S%z",
    )

    fileHandler = logging.FileHandler(logFilePath, encoding="utf-8")
    fileHandler.setLevel(level)
    fileHandler.setFormatter(formatter)
    fileHandler.addFilter(EnsureFieldsFilter(runId=runId))
    logger.addHandler(fileHandler)

    return logger, logFilePath


def closeCommandLogger(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


def logEvent(
    logger: logging.Logger,
    level: int,
    runId: str,
    component: str,
    message: str,
    rowNo: int | None = None,
) -> None:
    """
    Назначение:
        Запись события с runId/component; rowNo привязывает событие к строке листа.
    """
    extra = {"runId": runId, "component": component}
    if rowNo is not None:
        extra["rowNo"] = rowNo
    logger.log(level, message, extra=extra)
