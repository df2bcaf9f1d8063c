from __future__ import annotations

from ..models.outcomes import Change, Matched, Skipped, Update

"""Diff engine: minimal change set for a matched, validated row.

Only notes and completion_status are importable. Other recognized columns
(id, check number) are lookup keys, and unknown columns never reach here.
"""

NO_CHANGES = "No changes"


def diff_row(outcome: Matched) -> Update | Skipped:
    row, record = outcome.row, outcome.record
    changes: dict[str, Change] = {}

    # notes 列が存在すれば空セルも「空にする」変更として扱う
    current_notes = record.notes or ""
    if row.notes is not None and row.notes != current_notes:
        changes["notes"] = Change(from_value=current_notes, to_value=row.notes)

    if row.status and row.status != record.completion_status:
        changes["completion_status"] = Change(
            from_value=record.completion_status, to_value=row.status
        )

    if not changes:
        return Skipped(row=row, reason=NO_CHANGES, record_id=record.id)

    return Update(
        row=row.row_number,
        id=record.id,
        check_number=record.check_number,
        changes=changes,
    )
