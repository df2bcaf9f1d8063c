from __future__ import annotations

import os
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from typing import Any

import psycopg2
import psycopg2.extras

from ..config.loader import DatabaseConfig

"""PostgreSQL connection helpers.

接続情報の解決優先順位:
    1. DATABASE_URL / PGDSN (DSN 全体)
    2. 個別 PGHOST / PGPORT / PGUSER / PGPASSWORD / PGDATABASE
    3. config/app.yml の database セクション (不足分のフォールバック)
"""

__all__ = [
    "db_cursor",
    "resolve_dsn",
]


def resolve_dsn(db_cfg: DatabaseConfig) -> str:
    dsn_env = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if dsn_env:
        return dsn_env

    host = os.getenv("PGHOST", db_cfg.host or "localhost")
    port = os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
    user = os.getenv("PGUSER", db_cfg.user or "postgres")
    password = os.getenv("PGPASSWORD", db_cfg.password or "")
    database = os.getenv("PGDATABASE", db_cfg.database or "postgres")
    dsn = f"host={host} port={port} user={user} dbname={database}"
    if password:
        dsn += f" password={password}"
    return dsn


@contextmanager
def db_cursor(dsn: str, connect: Callable[[str], Any] | None = None) -> Iterator[Any]:
    """Yield a dict-row cursor inside one transaction.

    COMMIT on normal exit, ROLLBACK when the body raises. The connection is
    always closed; callers get one connection per store operation.
    """
    conn = (connect or psycopg2.connect)(dsn)
    try:
        cur = conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor)
        try:
            yield cur
            conn.commit()
        except Exception:
            conn.rollback()
            raise
        finally:
            cur.close()
    finally:
        conn.close()
