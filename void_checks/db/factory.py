from __future__ import annotations

import logging
import os

from ..config.loader import AppConfig
from .connection import resolve_dsn
from .memory import InMemoryRecordStore
from .postgres import PostgresRecordStore
from .store import RecordStore

logger = logging.getLogger(__name__)

MOCK_ENV = "VOID_CHECKS_USE_MOCK"


def use_mock_store() -> bool:
    return os.getenv(MOCK_ENV) == "1"


def create_store(cfg: AppConfig) -> RecordStore:
    """PostgreSQL store for cfg, or an empty in-memory store in mock mode."""
    if use_mock_store():
        logger.info("%s=1 -> in-memory record store (nothing is persisted)", MOCK_ENV)
        return InMemoryRecordStore()
    return PostgresRecordStore(resolve_dsn(cfg.database), table=cfg.table)
