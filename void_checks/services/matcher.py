from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from ..models.outcomes import Matched, MatchOutcome, Warned
from ..models.record import StoredRecord
from ..models.row_data import RawRow

"""Record matcher: resolve each parsed row to at most one stored record.

Matching policy (per row, in priority order):
1. id given and known       -> Matched
2. id given and unknown     -> Warned, no check-number fallback
3. check number given       -> exactly one record: Matched
                               several records:     Warned (ambiguous)
                               none:                Warned (not found)
4. neither                  -> no outcome

An id is treated as exact targeting, so a stale id never silently falls back
to a check-number match.
"""

__all__ = [
    "RecordIndex",
    "match_row",
    "match_rows",
]


@dataclass
class RecordIndex:
    """Snapshot of the record store indexed by id and grouped by check number.

    Built once per request; it is not kept in sync with later writes.
    """
    by_id: dict[str, StoredRecord] = field(default_factory=dict)
    by_check_number: dict[str, list[StoredRecord]] = field(default_factory=dict)

    @classmethod
    def build(cls, records: Iterable[StoredRecord]) -> RecordIndex:
        index = cls()
        for record in records:
            index.by_id[record.id] = record
            index.by_check_number.setdefault(record.check_number, []).append(record)
        return index

    def __len__(self) -> int:
        return len(self.by_id)


def match_row(row: RawRow, index: RecordIndex) -> MatchOutcome | None:
    if row.id:
        record = index.by_id.get(row.id)
        if record is None:
            return Warned(row=row, reason=f'No record found for ID "{row.id}"')
        return Matched(row=row, record=record)

    if row.check_number:
        bucket = index.by_check_number.get(row.check_number, [])
        if len(bucket) == 1:
            return Matched(row=row, record=bucket[0])
        if len(bucket) > 1:
            return Warned(
                row=row,
                reason=f"Multiple records for Check #{row.check_number} — skipped (ambiguous)",
                check_number=row.check_number,
            )
        return Warned(
            row=row,
            reason=f"No record found for Check #{row.check_number}",
            check_number=row.check_number,
        )

    return None


def match_rows(rows: Iterable[RawRow], index: RecordIndex) -> list[MatchOutcome]:
    """Match rows in input order; rows with neither key produce nothing."""
    outcomes: list[MatchOutcome] = []
    for row in rows:
        outcome = match_row(row, index)
        if outcome is not None:
            outcomes.append(outcome)
    return outcomes
