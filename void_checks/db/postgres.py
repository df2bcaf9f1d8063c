from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from typing import Any

import psycopg2
from psycopg2 import sql
from psycopg2.extras import Json

from ..models.record import StoredRecord
from .connection import db_cursor
from .store import (
    IMPORT_COLUMNS,
    TABLE_NAME,
    RecordNotFoundError,
    StoreError,
    check_updatable,
)

"""PostgreSQL record store (psycopg2).

テーブル名・列名は psycopg2.sql.Identifier で組み立て、値は全てパラメータで渡す。
id は UUID 列想定だが、不正な文字列 id でもエラーにせず「該当なし」とするため
id::text で比較する。
"""

logger = logging.getLogger(__name__)


def _adapt(value: Any) -> Any:
    # attachments (JSONB) 用
    if isinstance(value, (list, dict)):
        return Json(value)
    return value


class PostgresRecordStore:
    def __init__(
        self,
        dsn: str,
        table: str = TABLE_NAME,
        connect: Callable[[str], Any] | None = None,
    ) -> None:
        self.dsn = dsn
        self.table = table
        self._connect = connect

    def _run(self, query: sql.Composable, params: Any = None, *, fetch: str = "all") -> Any:
        try:
            with db_cursor(self.dsn, connect=self._connect) as cur:
                cur.execute(query, params)
                if fetch == "all":
                    return [dict(r) for r in cur.fetchall()]
                if fetch == "one":
                    row = cur.fetchone()
                    return dict(row) if row is not None else None
                return cur.rowcount
        except psycopg2.Error as e:
            raise StoreError(str(e).strip() or e.__class__.__name__) from e

    def fetch_import_snapshot(self) -> list[StoredRecord]:
        query = sql.SQL("SELECT {} FROM {}").format(
            sql.SQL(", ").join(sql.Identifier(c) for c in IMPORT_COLUMNS),
            sql.Identifier(self.table),
        )
        rows = self._run(query)
        logger.debug("snapshot table=%s records=%d", self.table, len(rows))
        return [StoredRecord.from_row(r) for r in rows]

    def list_records(self, status: str | None = None) -> list[dict[str, Any]]:
        if status is None:
            query = sql.SQL("SELECT * FROM {} ORDER BY request_date DESC").format(
                sql.Identifier(self.table)
            )
            return self._run(query)
        query = sql.SQL(
            "SELECT * FROM {} WHERE completion_status = %s ORDER BY request_date DESC"
        ).format(sql.Identifier(self.table))
        return self._run(query, (status,))

    def create_record(self, fields: dict[str, Any]) -> dict[str, Any]:
        columns = list(fields)
        query = sql.SQL("INSERT INTO {} ({}) VALUES ({}) RETURNING *").format(
            sql.Identifier(self.table),
            sql.SQL(", ").join(sql.Identifier(c) for c in columns),
            sql.SQL(", ").join(sql.Placeholder() for _ in columns),
        )
        row = self._run(query, [_adapt(fields[c]) for c in columns], fetch="one")
        if row is None:  # pragma: no cover - RETURNING always yields the inserted row
            raise StoreError("insert returned no row")
        return row

    def _set_clause(self, fields: dict[str, Any]) -> sql.Composable:
        return sql.SQL(", ").join(
            sql.SQL("{} = %s").format(sql.Identifier(c)) for c in fields
        )

    def update_record(self, record_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        check_updatable(fields)
        query = sql.SQL("UPDATE {} SET {} WHERE id::text = %s RETURNING *").format(
            sql.Identifier(self.table), self._set_clause(fields)
        )
        params = [_adapt(v) for v in fields.values()] + [str(record_id)]
        row = self._run(query, params, fetch="one")
        if row is None:
            raise RecordNotFoundError(f'No record with id "{record_id}"')
        return row

    def update_records(self, record_ids: Iterable[str], fields: dict[str, Any]) -> list[dict[str, Any]]:
        check_updatable(fields)
        ids = [str(i) for i in record_ids]
        if not ids:
            return []
        query = sql.SQL("UPDATE {} SET {} WHERE id::text = ANY(%s) RETURNING *").format(
            sql.Identifier(self.table), self._set_clause(fields)
        )
        params = [_adapt(v) for v in fields.values()] + [ids]
        return self._run(query, params)

    def delete_record(self, record_id: str) -> bool:
        query = sql.SQL("DELETE FROM {} WHERE id::text = %s").format(sql.Identifier(self.table))
        deleted = self._run(query, (str(record_id),), fetch="rowcount")
        if not deleted:
            logger.warning("delete: no record with id=%s", record_id)
        return bool(deleted)
