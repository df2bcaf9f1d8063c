from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from ..models.record import VALID_STATUSES, CompletionStatus

"""Completion status -> sign-off date coupling.

Every code path that writes completion_status (import apply, single edit,
bulk status transition) derives sign_off_date the same way:
Complete -> now (UTC), anything else -> NULL.
"""


class InvalidStatusError(ValueError):
    pass


def is_valid_status(value: str) -> bool:
    # 完全一致 (大文字小文字を区別)
    return value in VALID_STATUSES


def status_change_fields(status: str, now: datetime | None = None) -> dict[str, Any]:
    """Build the partial field set for a status write.

    Raises:
        InvalidStatusError: status is not one of VALID_STATUSES
    """
    if not is_valid_status(status):
        raise InvalidStatusError(
            f'Invalid status "{status}". Must be: {", ".join(VALID_STATUSES)}'
        )
    if status == CompletionStatus.COMPLETE.value:
        signed = now or datetime.now(UTC)
    else:
        signed = None
    return {"completion_status": status, "sign_off_date": signed}
