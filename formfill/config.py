from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import yaml

from formfill.infra.logging.setup import mapLogLevel


@dataclass(frozen=True)
class Settings:
    # Paths
    log_dir: str = "./logs"
    report_dir: str = "./reports"

    # Logging
    log_level: str = "INFO"

    # Sheet
    start_row: int = 1
    csv_delimiter: str = ","
    csv_encoding: str = "utf-8-sig"

    # Report
    report_items_limit: int = 200


@dataclass(frozen=True)
class LoadedSettings:
    settings: Settings
    sources_used: list[str]


_ENV_NAMES = {
    "log_dir": "FORMFILL_LOG_DIR",
    "report_dir": "FORMFILL_REPORT_DIR",
    "log_level": "FORMFILL_LOG_LEVEL",
    "start_row": "FORMFILL_START_ROW",
    "csv_delimiter": "FORMFILL_CSV_DELIMITER",
    "csv_encoding": "FORMFILL_CSV_ENCODING",
    "report_items_limit": "FORMFILL_REPORT_ITEMS_LIMIT",
}

_INT_FIELDS = ("start_row", "report_items_limit")


def _read_yaml_config(path: Path) -> dict:
    if not path.exists() or not path.is_file():
        return {}
    with path.open("r", encoding="utf-8") as f:
        data = yaml.safe_load(f) or {}
        if not isinstance(data, dict):
            return {}
        return data


def _env_get(name: str) -> str | None:
    v = os.getenv(name)
    if v is None or v.strip() == "":
        return None
    # разделитель может быть пробельным символом (например, "\t")
    return v if name == "FORMFILL_CSV_DELIMITER" else v.strip()


def _parse_int(name: str, v: str) -> int:
    try:
        return int(v)
    except ValueError as exc:
        raise ValueError(f"Invalid integer env value for {name}: {v}") from exc


def _validate(settings: Settings) -> None:
    if settings.start_row < 1:
        raise ValueError(f"start_row must be >= 1, got {settings.start_row}")
    if settings.report_items_limit < 0:
        raise ValueError(f"report_items_limit must be >= 0, got {settings.report_items_limit}")
    mapLogLevel(settings.log_level)


def loadSettings(
    config_path: str | None,
    cli_overrides: dict,
) -> LoadedSettings:
    """
    Назначение:
        Собирает итоговые настройки.

    Priority: CLI > ENV > config > defaults
    """
    sources: list[str] = []
    defaults = Settings()

    # 1) config file
    cfg: dict = {}
    if config_path:
        cfg = _read_yaml_config(Path(config_path))
        if cfg:
            sources.append("config")

    merged = {key: cfg.get(key, getattr(defaults, key)) for key in _ENV_NAMES}

    # 2) env
    env = {key: _env_get(name) for key, name in _ENV_NAMES.items()}
    if any(v is not None for v in env.values()):
        sources.append("env")
    for key, value in env.items():
        if value is None:
            continue
        merged[key] = _parse_int(_ENV_NAMES[key], value) if key in _INT_FIELDS else value

    # 3) CLI overrides (только явно переданные)
    if any(v is not None for v in cli_overrides.values()):
        sources.append("cli")
    for key, value in cli_overrides.items():
        if value is None:
            continue
        merged[key] = value

    settings = Settings(
        log_dir=str(merged["log_dir"]),
        report_dir=str(merged["report_dir"]),
        log_level=str(merged["log_level"]),
        start_row=int(merged["start_row"]),
        csv_delimiter=str(merged["csv_delimiter"]),
        csv_encoding=str(merged["csv_encoding"]),
        report_items_limit=int(merged["report_items_limit"]),
    )
    _validate(settings)
    return LoadedSettings(settings=settings, sources_used=sources)
