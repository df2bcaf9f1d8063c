from __future__ import annotations

from collections.abc import Iterable
from typing import Any, Protocol

from ..models.record import StoredRecord

"""Record store interface shared by the PostgreSQL and in-memory adapters.

Each call is atomic for a single record only. Nothing here is transactional
across rows: the importer reads a snapshot, then writes record by record.
"""

__all__ = [
    "IMPORT_COLUMNS",
    "RecordNotFoundError",
    "RecordStore",
    "StoreError",
    "UPDATABLE_COLUMNS",
]

TABLE_NAME = "void_checks"

# import スナップショットで読む列
IMPORT_COLUMNS: tuple[str, ...] = ("id", "check_number", "notes", "completion_status")

# 部分更新を許可する列 (id / request_date / created_* は不可)
UPDATABLE_COLUMNS: frozenset[str] = frozenset(
    {
        "check_number",
        "check_amount",
        "owner_number",
        "check_date",
        "notes",
        "completion_status",
        "sign_off_date",
        "attachments",
    }
)


class StoreError(Exception):
    """Any failure reported by the record store (driver, constraint, connectivity)."""


class RecordNotFoundError(StoreError):
    pass


def check_updatable(fields: dict[str, Any]) -> None:
    if not fields:
        raise StoreError("no fields to update")
    unknown = set(fields) - UPDATABLE_COLUMNS
    if unknown:
        raise StoreError(f"columns not updatable: {sorted(unknown)}")


class RecordStore(Protocol):
    def fetch_import_snapshot(self) -> list[StoredRecord]:
        """All records, reduced to IMPORT_COLUMNS."""
        ...

    def list_records(self, status: str | None = None) -> list[dict[str, Any]]:
        """Full rows, newest request_date first, optionally filtered by status."""
        ...

    def create_record(self, fields: dict[str, Any]) -> dict[str, Any]:
        ...

    def update_record(self, record_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        """Partial update by id. Raises RecordNotFoundError if no row matched."""
        ...

    def update_records(self, record_ids: Iterable[str], fields: dict[str, Any]) -> list[dict[str, Any]]:
        ...

    def delete_record(self, record_id: str) -> bool:
        ...
