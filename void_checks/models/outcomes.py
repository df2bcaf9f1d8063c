from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

from .record import StoredRecord
from .row_data import RawRow

"""Per-row outcomes of the reconciliation pipeline.

A surviving RawRow ends in exactly one of:
- Matched  -> (validated, diffed) -> Update or Skipped
- Warned   (not found / ambiguous / invalid status)
- Skipped  (matched but nothing to change)

Reasons are carried as data. None of these are exceptions: they are the
normal, frequent results of matching a hand-edited export.
"""

__all__ = [
    "Change",
    "Matched",
    "MatchOutcome",
    "Skipped",
    "Update",
    "Warned",
]


@dataclass(frozen=True)
class Matched:
    row: RawRow
    record: StoredRecord


@dataclass(frozen=True)
class Warned:
    row: RawRow
    reason: str
    check_number: str | None = None  # 照合キーとして使われた / 照合済レコードの Check #

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {"row": self.row.row_number}
        if self.check_number is not None:
            data["checkNumber"] = self.check_number
        data["message"] = self.reason
        return data


@dataclass(frozen=True)
class Skipped:
    row: RawRow
    reason: str
    record_id: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"row": self.row.row_number, "id": self.record_id, "reason": self.reason}


MatchOutcome = Union[Matched, Warned, Skipped]


@dataclass(frozen=True)
class Change:
    """Old/new value pair for one diffable field."""
    from_value: str
    to_value: str

    def to_dict(self) -> dict[str, str]:
        return {"from": self.from_value, "to": self.to_value}


@dataclass(frozen=True)
class Update:
    """Proposed mutation for one stored record (never persisted by itself)."""
    row: int
    id: str
    check_number: str
    changes: dict[str, Change] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {
            "row": self.row,
            "id": self.id,
            "checkNumber": self.check_number,
            "changes": {name: change.to_dict() for name, change in self.changes.items()},
        }
