"""Domain models for the void check reconciliation importer.

This package contains the record snapshot, parsed row, per-row outcome and
result models shared by the parser, matcher, diff engine and orchestrator.
"""

from .error_record import ErrorRecord
from .import_result import AppliedEntry, ApplyResult, PersistFailure, PreviewResult
from .outcomes import Change, Matched, MatchOutcome, Skipped, Update, Warned
from .record import VALID_STATUSES, CompletionStatus, StoredRecord
from .row_data import RawRow

__all__ = [
    # Store snapshot
    "CompletionStatus",
    "StoredRecord",
    "VALID_STATUSES",
    # Pipeline models
    "RawRow",
    "Matched",
    "Warned",
    "Skipped",
    "MatchOutcome",
    "Change",
    "Update",
    # Results
    "AppliedEntry",
    "PersistFailure",
    "PreviewResult",
    "ApplyResult",
    "ErrorRecord",
]
