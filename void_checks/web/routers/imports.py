from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Depends, File, Form, UploadFile
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from void_checks.db.store import RecordStore
from void_checks.excel.reader import SchemaError
from void_checks.logging.error_log import ErrorLogBuffer, ErrorRecord
from void_checks.services.reconcile import ImportMode, InvalidActionError, run_import
from void_checks.web.services import get_store

"""Spreadsheet upload endpoint (preview / apply).

multipart fields:
    action: "preview" | "apply"
    file:   .xlsx binary

400 for a missing file, an unknown action or any SchemaError (nothing is
read from or written to the store in that case); 500 when the store fails.
Per-row warnings / skips / write errors are part of the 200 body.
"""

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Imports"])


def _error(status_code: int, error: str, message: str | None = None) -> JSONResponse:
    content: dict[str, Any] = {"error": error}
    if message is not None:
        content["message"] = message
    return JSONResponse(status_code=status_code, content=content)


@router.post("/api/upload-spreadsheet")
async def upload_spreadsheet(
    action: str | None = Form(None),
    file: UploadFile | None = File(None),
    store: RecordStore = Depends(get_store),
) -> Any:
    if file is None:
        return _error(400, "No file provided")
    try:
        mode = ImportMode.parse(action)
    except InvalidActionError as e:
        return _error(400, str(e))

    payload = await file.read()
    file_name = file.filename or "<upload>"
    error_log = ErrorLogBuffer()
    kwargs: dict[str, Any] = {}
    if mode is ImportMode.APPLY:
        kwargs = {"error_log": error_log, "file_name": file_name}

    try:
        result = await run_in_threadpool(run_import, payload, store, mode, **kwargs)
    except SchemaError as e:
        logger.warning("upload %s rejected: %s", file_name, e)
        return _error(400, str(e))
    except Exception as e:
        logger.exception("Upload spreadsheet error: %s", e)
        error_log.append(
            ErrorRecord.create(file=file_name, row=-1, error_type="PROCESSING_ERROR", message=str(e))
        )
        _flush(error_log)
        return _error(500, "Failed to process spreadsheet", str(e) or "Unknown error")

    _flush(error_log)
    return result.to_dict()


def _flush(error_log: ErrorLogBuffer) -> None:
    try:
        error_log.flush()
    except OSError as e:
        # error log が書けなくてもレスポンスは返す
        logger.warning("error log flush failed: %s", e)
