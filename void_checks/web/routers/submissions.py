from __future__ import annotations

import logging
from datetime import UTC, date, datetime
from typing import Any

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from void_checks.db.store import RecordNotFoundError, RecordStore, StoreError
from void_checks.models.record import CompletionStatus
from void_checks.services.signoff import InvalidStatusError, status_change_fields
from void_checks.web.services import get_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/submissions", tags=["Submissions"])

# 単体 PATCH で編集可能な列
EDITABLE_FIELDS = (
    "check_number",
    "check_amount",
    "owner_number",
    "check_date",
    "notes",
    "attachments",
)


class SubmissionCreate(BaseModel):
    check_number: str
    check_amount: float
    owner_number: str
    check_date: date
    notes: str | None = ""
    created_by: str | None = None
    attachments: list[dict[str, Any]] = Field(default_factory=list)


def _error(status_code: int, error: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": error})


@router.get("")
def list_submissions(store: RecordStore = Depends(get_store)) -> Any:
    try:
        return store.list_records()
    except StoreError as e:
        logger.error("list submissions failed: %s", e)
        return _error(500, "Failed to fetch submissions")


@router.post("", status_code=201)
def create_submission(payload: SubmissionCreate, store: RecordStore = Depends(get_store)) -> Any:
    fields = {
        "check_number": payload.check_number,
        "check_amount": payload.check_amount,
        "owner_number": payload.owner_number,
        "check_date": payload.check_date,
        "notes": payload.notes or "",
        "completion_status": CompletionStatus.PENDING.value,
        "sign_off_date": None,
        "request_date": datetime.now(UTC),
        "created_by": payload.created_by or "Unknown User",
        "attachments": payload.attachments,
    }
    try:
        return store.create_record(fields)
    except StoreError as e:
        logger.error("create submission failed: %s", e)
        return _error(500, "Failed to create submission")


@router.patch("")
def update_submission(
    body: dict[str, Any] = Body(...), store: RecordStore = Depends(get_store)
) -> Any:
    """Bulk status transition ({ids, completion_status}) or single record edit ({id, ...})."""
    ids = body.get("ids")
    status = body.get("completion_status")

    if isinstance(ids, list) and status:
        try:
            fields = status_change_fields(status)
        except InvalidStatusError as e:
            return _error(400, str(e))
        try:
            return store.update_records([str(i) for i in ids], fields)
        except StoreError as e:
            logger.error("bulk update failed: %s", e)
            return _error(500, "Failed to update submissions")

    record_id = body.get("id")
    if not record_id:
        return _error(400, "Missing id")

    fields = {name: body[name] for name in EDITABLE_FIELDS if name in body}
    if fields.get("notes") is None and "notes" in fields:
        fields["notes"] = ""
    if fields.get("check_amount") is not None:
        try:
            fields["check_amount"] = float(fields["check_amount"])
        except (TypeError, ValueError):
            return _error(400, "Invalid check_amount")
    if status:
        try:
            fields.update(status_change_fields(status))
        except InvalidStatusError as e:
            return _error(400, str(e))
    if not fields:
        return _error(400, "No fields to update")

    try:
        return store.update_record(str(record_id), fields)
    except RecordNotFoundError:
        return _error(404, "Submission not found")
    except StoreError as e:
        logger.error("update submission %s failed: %s", record_id, e)
        return _error(500, "Failed to update submission")


@router.delete("")
def delete_submission(
    body: dict[str, Any] = Body(default_factory=dict), store: RecordStore = Depends(get_store)
) -> Any:
    record_id = body.get("id")
    if not record_id:
        return _error(400, "Missing id")
    try:
        store.delete_record(str(record_id))
    except StoreError as e:
        logger.error("delete submission %s failed: %s", record_id, e)
        return _error(500, "Failed to delete submission")
    return {"success": True}
