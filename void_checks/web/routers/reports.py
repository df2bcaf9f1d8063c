from __future__ import annotations

import hmac
import logging
import os
from typing import Any

from fastapi import APIRouter, Depends, Header
from fastapi.responses import JSONResponse

from void_checks.config.loader import AppConfig
from void_checks.db.store import RecordStore
from void_checks.services.report import ReportError, Transport, local_now, run_pending_report
from void_checks.web.services import get_config, get_report_transport, get_store

"""Monthly cron trigger for the pending void checks report.

Authorization: Bearer <CRON_SECRET>. With CRON_SECRET unset every call is
rejected.
"""

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Reports"])

CRON_SECRET_ENV = "CRON_SECRET"


def _authorized(header: str | None) -> bool:
    secret = os.getenv(CRON_SECRET_ENV)
    if not secret or not header:
        return False
    return hmac.compare_digest(header, f"Bearer {secret}")


@router.get("/api/cron/pending-report")
def pending_report(
    authorization: str | None = Header(None),
    store: RecordStore = Depends(get_store),
    cfg: AppConfig = Depends(get_config),
    transport: Transport = Depends(get_report_transport),
) -> Any:
    if not _authorized(authorization):
        return JSONResponse(status_code=401, content={"error": "Unauthorized"})

    try:
        outcome = run_pending_report(
            store, cfg.report, now=local_now(cfg.timezone), transport=transport
        )
    except ReportError as e:
        logger.error("pending report: %s", e)
        return JSONResponse(status_code=500, content={"success": False, "error": str(e)})
    except Exception as e:
        logger.exception("pending report failed")
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to generate/send report", "details": str(e)},
        )

    body: dict[str, Any] = {"success": outcome.success, "message": outcome.message}
    if outcome.recipients:
        body["recipients"] = outcome.recipients
    return body
