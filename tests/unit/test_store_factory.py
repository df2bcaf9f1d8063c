from __future__ import annotations

from void_checks.config.loader import AppConfig, DatabaseConfig
from void_checks.db.factory import create_store
from void_checks.db.memory import InMemoryRecordStore
from void_checks.db.postgres import PostgresRecordStore


def test_mock_mode_uses_memory_store(monkeypatch):
    monkeypatch.setenv("VOID_CHECKS_USE_MOCK", "1")
    assert isinstance(create_store(AppConfig()), InMemoryRecordStore)


def test_live_mode_builds_postgres_store_without_connecting():
    cfg = AppConfig(table="void_checks_test", database=DatabaseConfig(dsn="dbname=vc"))
    store = create_store(cfg)
    assert isinstance(store, PostgresRecordStore)
    assert store.dsn == "dbname=vc"
    assert store.table == "void_checks_test"
