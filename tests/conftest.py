# Shared pytest fixtures
from __future__ import annotations
import io
import tempfile
from pathlib import Path
from typing import Any

import pandas as pd
import pytest

from void_checks.db.memory import InMemoryRecordStore
from void_checks.logging.init import reset_logging

# 実行環境の変数がテストに漏れないよう毎回消す
_ENV_VARS = [
    "VOID_CHECKS_CONFIG",
    "VOID_CHECKS_USE_MOCK",
    "DATABASE_URL",
    "PGDSN",
    "PGHOST",
    "PGPORT",
    "PGUSER",
    "PGPASSWORD",
    "PGDATABASE",
    "REPORT_RECIPIENTS",
    "SMTP_HOST",
    "SMTP_PORT",
    "SMTP_SECURE",
    "SMTP_USER",
    "SMTP_PASSWORD",
    "SMTP_FROM",
    "CRON_SECRET",
]


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    yield
    # capsys のストリームに紐づいたハンドラを次のテストへ持ち越さない
    reset_logging()


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture()
def sample_config_yaml() -> str:
    return """table: void_checks
timezone: UTC
database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: appdb
report:
  recipients: [finance@example.com, audit@example.com]
  sender: reports@example.com
  smtp:
    host: smtp.example.com
    port: 587
    secure: false
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "app.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


def workbook_bytes(rows: list[list[Any]], sheet: str = "Sheet1") -> bytes:
    """Build an .xlsx payload; rows[0] is the header row."""
    buf = io.BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as writer:
        pd.DataFrame(rows).to_excel(writer, sheet_name=sheet, header=False, index=False)
    return buf.getvalue()


@pytest.fixture()
def make_workbook():
    return workbook_bytes


@pytest.fixture()
def write_workbook(temp_workdir: Path):
    def _write(name: str, rows: list[list[Any]]) -> Path:
        p = temp_workdir / "data" / name
        p.write_bytes(workbook_bytes(rows))
        return p
    return _write


@pytest.fixture()
def sample_rows() -> list[dict[str, Any]]:
    return [
        {"id": "1", "check_number": "100", "notes": "", "completion_status": "Pending",
         "check_amount": 125.5, "owner_number": "O-1", "created_by": "alice@example.com"},
        {"id": "2", "check_number": "200", "notes": "dup a", "completion_status": "Pending"},
        {"id": "3", "check_number": "200", "notes": "dup b", "completion_status": "Pending"},
        {"id": "4", "check_number": "300", "notes": "done", "completion_status": "Complete"},
    ]


@pytest.fixture()
def memory_store(sample_rows) -> InMemoryRecordStore:
    return InMemoryRecordStore(sample_rows)


@pytest.fixture()
def api(memory_store):
    """TestClient with the record store, config and mail transport overridden."""
    from fastapi.testclient import TestClient

    from void_checks.config.loader import AppConfig, ReportConfig
    from void_checks.web.app import create_app
    from void_checks.web.services import get_config, get_report_transport, get_store

    sent: list[Any] = []
    app = create_app()
    app.dependency_overrides[get_store] = lambda: memory_store
    app.dependency_overrides[get_config] = lambda: AppConfig(
        report=ReportConfig(recipients=("finance@example.com",), sender="reports@example.com")
    )
    app.dependency_overrides[get_report_transport] = lambda: (lambda msg, settings: sent.append(msg))
    client = TestClient(app)
    client.store = memory_store
    client.sent = sent
    return client
