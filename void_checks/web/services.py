from __future__ import annotations

from functools import lru_cache

from void_checks.config.loader import AppConfig, load_app_config
from void_checks.db.factory import create_store
from void_checks.db.store import RecordStore
from void_checks.services.report import Transport, smtp_transport


@lru_cache(maxsize=1)
def get_config() -> AppConfig:
    return load_app_config()


@lru_cache(maxsize=1)
def get_store() -> RecordStore:
    return create_store(get_config())


def get_report_transport() -> Transport:
    return smtp_transport
