from __future__ import annotations

import copy
import uuid
from collections.abc import Iterable
from datetime import UTC, datetime
from typing import Any

from ..models.record import CompletionStatus, StoredRecord
from .store import RecordNotFoundError, check_updatable

"""In-memory record store.

Used for mock mode (VOID_CHECKS_USE_MOCK=1, no database) and by the tests.
Same contract as PostgresRecordStore: rows are plain dicts keyed by column,
returned as copies so callers cannot mutate stored state.
"""


class InMemoryRecordStore:
    def __init__(self, rows: Iterable[dict[str, Any]] | None = None) -> None:
        self._rows: dict[str, dict[str, Any]] = {}
        for row in rows or []:
            self._insert(dict(row))

    def _insert(self, row: dict[str, Any]) -> dict[str, Any]:
        now = datetime.now(UTC)
        row.setdefault("id", str(uuid.uuid4()))
        row["id"] = str(row["id"])
        row.setdefault("notes", "")
        row.setdefault("completion_status", CompletionStatus.PENDING.value)
        row.setdefault("sign_off_date", None)
        row.setdefault("request_date", now)
        row.setdefault("attachments", [])
        row.setdefault("created_at", now)
        self._rows[row["id"]] = row
        return copy.deepcopy(row)

    def get(self, record_id: str) -> dict[str, Any] | None:
        row = self._rows.get(str(record_id))
        return copy.deepcopy(row) if row is not None else None

    def fetch_import_snapshot(self) -> list[StoredRecord]:
        return [StoredRecord.from_row(r) for r in self._rows.values()]

    def list_records(self, status: str | None = None) -> list[dict[str, Any]]:
        rows = [r for r in self._rows.values() if status is None or r.get("completion_status") == status]
        # request_date DESC (NULL は末尾)
        rows.sort(key=lambda r: (r.get("request_date") is not None, r.get("request_date") or 0), reverse=True)
        return copy.deepcopy(rows)

    def create_record(self, fields: dict[str, Any]) -> dict[str, Any]:
        return self._insert(dict(fields))

    def update_record(self, record_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        check_updatable(fields)
        row = self._rows.get(str(record_id))
        if row is None:
            raise RecordNotFoundError(f'No record with id "{record_id}"')
        row.update(fields)
        return copy.deepcopy(row)

    def update_records(self, record_ids: Iterable[str], fields: dict[str, Any]) -> list[dict[str, Any]]:
        check_updatable(fields)
        updated = []
        for record_id in record_ids:
            row = self._rows.get(str(record_id))
            if row is None:
                continue
            row.update(fields)
            updated.append(copy.deepcopy(row))
        return updated

    def delete_record(self, record_id: str) -> bool:
        return self._rows.pop(str(record_id), None) is not None
