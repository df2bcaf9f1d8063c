from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

"""Config loader.

Responsibilities:
- Load YAML config (config/app.yml, or the path in VOID_CHECKS_CONFIG)
- Validate against the bundled JSON schema (config_schema.json)
- Apply defaults (table=void_checks, timezone=UTC, smtp port 587)

Environment variables (DATABASE_URL, SMTP_*, REPORT_RECIPIENTS, ...) are
resolved where they are used, on top of these values.
"""

CONFIG_ENV = "VOID_CHECKS_CONFIG"
DEFAULT_CONFIG_PATH = Path("config/app.yml")
SCHEMA_PATH = Path(__file__).with_name("config_schema.json")


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class DatabaseConfig:
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None


@dataclass(frozen=True)
class SmtpConfig:
    host: str | None = None
    port: int = 587
    secure: bool = False
    user: str | None = None
    password: str | None = None


@dataclass(frozen=True)
class ReportConfig:
    recipients: tuple[str, ...] = ()
    sender: str | None = None
    smtp: SmtpConfig = field(default_factory=SmtpConfig)


@dataclass(frozen=True)
class AppConfig:
    table: str = "void_checks"
    timezone: str = "UTC"
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    report: ReportConfig = field(default_factory=ReportConfig)


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: schema file missing / not JSON, or the data violates it
            (unknown keys, wrong types, invalid table name).
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")
    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def config_from_mapping(data: dict[str, Any]) -> AppConfig:
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping, got {type(data).__name__}")
    _validate_config_schema(data)

    db_raw = data.get("database") or {}
    db = DatabaseConfig(
        host=db_raw.get("host"),
        port=db_raw.get("port"),
        user=db_raw.get("user"),
        password=db_raw.get("password"),
        database=db_raw.get("database"),
        dsn=db_raw.get("dsn"),
    )
    report_raw = data.get("report") or {}
    smtp_raw = report_raw.get("smtp") or {}
    report = ReportConfig(
        recipients=tuple(report_raw.get("recipients") or ()),
        sender=report_raw.get("sender"),
        smtp=SmtpConfig(
            host=smtp_raw.get("host"),
            port=smtp_raw.get("port", 587),
            secure=smtp_raw.get("secure", False),
            user=smtp_raw.get("user"),
            password=smtp_raw.get("password"),
        ),
    )
    timezone = data.get("timezone", "UTC")
    try:
        ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConfigError(f"unknown timezone: {timezone}") from e

    return AppConfig(
        table=data.get("table", "void_checks"),
        timezone=timezone,
        database=db,
        report=report,
    )


def load_config(path: Path) -> AppConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    return config_from_mapping(data)


def config_path_from_env() -> Path:
    return Path(os.getenv(CONFIG_ENV) or DEFAULT_CONFIG_PATH)


def load_app_config(path: Path | None = None) -> AppConfig:
    """Load the config file if present, defaults otherwise.

    An explicitly given path (argument or VOID_CHECKS_CONFIG) must exist.
    """
    explicit = path is not None or bool(os.getenv(CONFIG_ENV))
    target = path or config_path_from_env()
    if not target.exists() and not explicit:
        return AppConfig()
    return load_config(target)
