from __future__ import annotations

from ..models.outcomes import Matched, Warned
from ..models.record import VALID_STATUSES
from .signoff import is_valid_status

"""Status validation for matched rows.

A bad status rejects the whole row (notes included): an unknown status value
usually means the export itself was edited or produced incorrectly.
"""


def validate_status(outcome: Matched) -> Matched | Warned:
    status = outcome.row.status
    if status and not is_valid_status(status):
        return Warned(
            row=outcome.row,
            reason=f'Invalid status "{status}". Must be: {", ".join(VALID_STATUSES)}',
            check_number=outcome.record.check_number,
        )
    return outcome
