from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from .outcomes import Skipped, Update, Warned

"""Result models returned by the preview / apply orchestrator.

The to_dict() forms are the JSON bodies of the upload endpoint:

    preview -> {updates, warnings, skipped}
    apply   -> {applied, errors, warnings, skipped}
"""


@dataclass(frozen=True)
class AppliedEntry:
    id: str
    check_number: str

    def to_dict(self) -> dict[str, str]:
        return {"id": self.id, "checkNumber": self.check_number}


@dataclass(frozen=True)
class PersistFailure:
    """Apply-phase write failure for a single record."""
    id: str
    error: str
    row: int | None = None  # ログ出力用 (レスポンスには含めない)

    def to_dict(self) -> dict[str, str]:
        return {"id": self.id, "error": self.error}


@dataclass(frozen=True)
class PreviewResult:
    updates: list[Update] = field(default_factory=list)
    warnings: list[Warned] = field(default_factory=list)
    skipped: list[Skipped] = field(default_factory=list)

    @property
    def total_rows(self) -> int:
        return len(self.updates) + len(self.warnings) + len(self.skipped)

    def to_dict(self) -> dict[str, Any]:
        return {
            "updates": [u.to_dict() for u in self.updates],
            "warnings": [w.to_dict() for w in self.warnings],
            "skipped": [s.to_dict() for s in self.skipped],
        }


@dataclass(frozen=True)
class ApplyResult:
    applied: list[AppliedEntry]
    errors: list[PersistFailure]
    diff: PreviewResult

    @property
    def warnings(self) -> list[Warned]:
        return self.diff.warnings

    @property
    def skipped(self) -> list[Skipped]:
        return self.diff.skipped

    @property
    def updates(self) -> list[Update]:
        return self.diff.updates

    def to_dict(self) -> dict[str, Any]:
        return {
            "applied": [a.to_dict() for a in self.applied],
            "errors": [e.to_dict() for e in self.errors],
            "warnings": [w.to_dict() for w in self.warnings],
            "skipped": [s.to_dict() for s in self.skipped],
        }
