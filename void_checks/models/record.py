from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

"""StoredRecord domain model and CompletionStatus enum.

StoredRecord is the importer's read-only view of one row of the record store.
Only the four fields the reconciliation importer reads are carried here; the
full row (amount, owner, dates, attachments) stays a plain dict owned by the
store adapters.
"""

__all__ = [
    "CompletionStatus",
    "StoredRecord",
    "VALID_STATUSES",
]


class CompletionStatus(str, Enum):
    """Lifecycle of a void check request.

    - PENDING: request submitted, not yet processed
    - COMPLETE: check voided; sign-off date is stamped
    - REQUEST_INVALIDATED: request withdrawn or rejected
    """
    PENDING = "Pending"
    COMPLETE = "Complete"
    REQUEST_INVALIDATED = "Request Invalidated"


# 表示順 = エラーメッセージ内の列挙順
VALID_STATUSES: tuple[str, ...] = tuple(s.value for s in CompletionStatus)


@dataclass(frozen=True)
class StoredRecord:
    """Snapshot of a stored void check taken at the start of an import run."""
    id: str
    check_number: str
    notes: str = ""
    completion_status: str = CompletionStatus.PENDING.value

    @staticmethod
    def from_row(row: dict[str, Any]) -> StoredRecord:
        """Build a record from a store row (dict keyed by column name).

        UUID ids are rendered as text and a NULL notes column becomes "".
        """
        check_number = row.get("check_number")
        return StoredRecord(
            id=str(row["id"]),
            check_number="" if check_number is None else str(check_number),
            notes=row.get("notes") or "",
            completion_status=row.get("completion_status") or CompletionStatus.PENDING.value,
        )
