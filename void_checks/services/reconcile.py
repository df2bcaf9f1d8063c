from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import UTC, datetime
from enum import Enum
from pathlib import Path
from typing import Any, BinaryIO, Union

from ..db.store import RecordStore
from ..excel.reader import parse_upload
from ..logging.error_log import ErrorLogBuffer, ErrorRecord
from ..models.import_result import AppliedEntry, ApplyResult, PersistFailure, PreviewResult
from ..models.outcomes import Matched, Skipped, Update, Warned
from ..models.record import StoredRecord
from ..models.row_data import RawRow
from .diff import diff_row
from .matcher import RecordIndex, match_rows
from .progress import ProgressTracker
from .signoff import status_change_fields
from .validation import validate_status

"""Preview / apply orchestration for spreadsheet reconciliation.

Pipeline:
    upload -> parse_upload -> RawRows
           -> snapshot (store.fetch_import_snapshot) -> RecordIndex
           -> match_rows -> validate_status -> diff_row
           -> PreviewResult(updates, warnings, skipped)
    apply  = the same PreviewResult, then one independent write per Update

Apply never re-computes the diff differently from preview: both go through
compute_diff(). Write failures are captured per row and never raised; a
SchemaError (or a failing snapshot read) aborts before any row is processed.

Snapshot -> diff -> write is not transactional. A concurrent import or manual
edit between the snapshot and the write can be overwritten (lost update).
"""

logger = logging.getLogger(__name__)

UploadSource = Union[bytes, Path, BinaryIO]


class InvalidActionError(ValueError):
    pass


class ImportMode(str, Enum):
    PREVIEW = "preview"
    APPLY = "apply"

    @classmethod
    def parse(cls, value: str | None) -> ImportMode:
        try:
            return cls((value or "").strip().lower())
        except ValueError:
            raise InvalidActionError(
                f'Invalid action "{value}". Must be "preview" or "apply"'
            ) from None


def compute_diff(rows: Iterable[RawRow], records: Iterable[StoredRecord]) -> PreviewResult:
    """Match, validate and diff parsed rows against a record snapshot.

    Output lists keep input row order.
    """
    index = RecordIndex.build(records)
    updates: list[Update] = []
    warnings: list[Warned] = []
    skipped: list[Skipped] = []

    for outcome in match_rows(rows, index):
        result: Any = outcome
        if isinstance(result, Matched):
            result = validate_status(result)
        if isinstance(result, Matched):
            result = diff_row(result)

        if isinstance(result, Update):
            updates.append(result)
        elif isinstance(result, Warned):
            warnings.append(result)
        else:
            skipped.append(result)

    logger.debug(
        "diff snapshot=%d updates=%d warnings=%d skipped=%d",
        len(index), len(updates), len(warnings), len(skipped),
    )
    return PreviewResult(updates=updates, warnings=warnings, skipped=skipped)


def update_fields(update: Update, now: datetime) -> dict[str, Any]:
    """Partial field set written for one Update (only the changed fields)."""
    fields: dict[str, Any] = {}
    if "notes" in update.changes:
        fields["notes"] = update.changes["notes"].to_value
    if "completion_status" in update.changes:
        fields.update(status_change_fields(update.changes["completion_status"].to_value, now))
    return fields


def persist_updates(
    updates: list[Update],
    store: RecordStore,
    *,
    now: datetime | None = None,
    show_progress: bool = False,
) -> tuple[list[AppliedEntry], list[PersistFailure]]:
    """Write each Update independently, in order. One failure never stops the rest."""
    stamp = now or datetime.now(UTC)
    applied: list[AppliedEntry] = []
    errors: list[PersistFailure] = []

    with ProgressTracker(len(updates), enabled=show_progress) as progress:
        for upd in updates:
            try:
                store.update_record(upd.id, update_fields(upd, stamp))
            except Exception as e:  # 行単位で捕捉し、残りの行は継続
                message = str(e) or e.__class__.__name__
                logger.warning("row=%d id=%s write failed: %s", upd.row, upd.id, message)
                errors.append(PersistFailure(id=upd.id, error=message, row=upd.row))
                progress.advance(success=False)
            else:
                applied.append(AppliedEntry(id=upd.id, check_number=upd.check_number))
                progress.advance(success=True)

    return applied, errors


def preview_import(source: UploadSource, store: RecordStore) -> PreviewResult:
    """Parse an upload and diff it against the current store snapshot (no writes)."""
    parsed = parse_upload(source)
    records = store.fetch_import_snapshot()
    logger.info(
        "sheet=%s columns=%s rows=%d snapshot=%d",
        parsed.sheet_name, parsed.columns.present(), len(parsed.rows), len(records),
    )
    return compute_diff(parsed.rows, records)


def apply_import(
    source: UploadSource,
    store: RecordStore,
    *,
    now: datetime | None = None,
    show_progress: bool = False,
    error_log: ErrorLogBuffer | None = None,
    file_name: str = "<upload>",
) -> ApplyResult:
    diff = preview_import(source, store)
    applied, errors = persist_updates(diff.updates, store, now=now, show_progress=show_progress)

    if error_log is not None:
        for failure in errors:
            error_log.append(
                ErrorRecord.create(
                    file=file_name,
                    row=failure.row if failure.row is not None else -1,
                    error_type="PERSIST_ERROR",
                    message=failure.error,
                    record_id=failure.id,
                )
            )

    logger.info(
        "apply updates=%d applied=%d errors=%d warnings=%d skipped=%d",
        len(diff.updates), len(applied), len(errors), len(diff.warnings), len(diff.skipped),
    )
    return ApplyResult(applied=applied, errors=errors, diff=diff)


def run_import(
    source: UploadSource,
    store: RecordStore,
    mode: ImportMode | str,
    **kwargs: Any,
) -> PreviewResult | ApplyResult:
    """Dispatch on mode. kwargs are passed to apply_import only."""
    mode = mode if isinstance(mode, ImportMode) else ImportMode.parse(mode)
    if mode is ImportMode.PREVIEW:
        return preview_import(source, store)
    return apply_import(source, store, **kwargs)
