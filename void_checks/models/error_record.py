from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for the JSON Lines error log.

Supports row=-1 as a sentinel for upload-level errors (schema failures, store
failures while taking the snapshot) where no single row is responsible.
record_id is None when the error is not tied to a stored record.
"""

__all__ = [
    "ErrorRecord",
]


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record for JSON Lines logging.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: uploaded file name
        row: sheet row number (header = 1). -1 for upload-level errors
        record_id: targeted record id, if any
        error_type: classification in UPPER_SNAKE_CASE (SCHEMA_ERROR, PERSIST_ERROR, ...)
        message: driver / validation message
    """
    timestamp: str
    file: str
    row: int
    record_id: str | None
    error_type: str
    message: str

    @staticmethod
    def create(
        file: str, row: int, error_type: str, message: str, record_id: str | None = None
    ) -> ErrorRecord:
        """Create a new ErrorRecord stamped with the current UTC time."""
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(
            timestamp=ts,
            file=file,
            row=row,
            record_id=record_id,
            error_type=error_type,
            message=message,
        )

    def to_json_line(self) -> str:
        # 追加キー阻止: dataclass -> dict して json.dumps
        return json.dumps(asdict(self), ensure_ascii=False)
