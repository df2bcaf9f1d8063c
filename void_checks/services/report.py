from __future__ import annotations

import io
import logging
import os
import smtplib
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, date, datetime
from email.message import EmailMessage
from typing import Any
from zoneinfo import ZoneInfo

import pandas as pd
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from ..config.loader import ReportConfig
from ..db.store import RecordStore
from ..models.record import CompletionStatus

"""Pending void checks report (monthly cron export).

1. Pending レコードを取得 (request_date 降順)
2. pandas + openpyxl で xlsx を生成 (ヘッダ固定 / 装飾 / 金額書式 / オートフィルタ)
3. SMTP で添付送信

Settings come from config.report, overridden by REPORT_RECIPIENTS and
SMTP_HOST / SMTP_PORT / SMTP_SECURE / SMTP_USER / SMTP_PASSWORD / SMTP_FROM.
"""

logger = logging.getLogger(__name__)

REPORT_SHEET = "Pending Void Checks"
XLSX_MIME = ("application", "vnd.openxmlformats-officedocument.spreadsheetml.sheet")

# (header, field, width)
REPORT_COLUMNS: list[tuple[str, str, int]] = [
    ("ID", "id", 38),
    ("Check #", "check_number", 15),
    ("Check Amount", "check_amount", 18),
    ("Owner #", "owner_number", 15),
    ("Check Date", "check_date", 15),
    ("Notes", "notes", 35),
    ("Completion Status", "completion_status", 20),
    ("Request Date", "request_date", 20),
    ("Created By", "created_by", 30),
]

HEADER_FILL = PatternFill(fill_type="solid", fgColor="FF0078D4")
STRIPE_FILL = PatternFill(fill_type="solid", fgColor="FFF7F8FA")
THIN = Side(style="thin", color="FFD4DAE3")
CELL_BORDER = Border(top=THIN, bottom=THIN, left=THIN, right=THIN)


class ReportError(Exception):
    pass


@dataclass(frozen=True)
class ReportSettings:
    recipients: tuple[str, ...]
    sender: str | None
    smtp_host: str | None
    smtp_port: int
    smtp_secure: bool
    smtp_user: str | None
    smtp_password: str | None


@dataclass(frozen=True)
class ReportOutcome:
    success: bool
    message: str
    recipients: str = ""
    item_count: int = 0


Transport = Callable[[EmailMessage, ReportSettings], None]


def resolve_report_settings(cfg: ReportConfig) -> ReportSettings:
    env_recipients = os.getenv("REPORT_RECIPIENTS")
    if env_recipients is not None:
        recipients = tuple(r.strip() for r in env_recipients.split(",") if r.strip())
    else:
        recipients = cfg.recipients
    smtp_user = os.getenv("SMTP_USER", cfg.smtp.user or "") or None
    secure_env = os.getenv("SMTP_SECURE")
    return ReportSettings(
        recipients=recipients,
        sender=os.getenv("SMTP_FROM") or cfg.sender or smtp_user,
        smtp_host=os.getenv("SMTP_HOST") or cfg.smtp.host,
        smtp_port=int(os.getenv("SMTP_PORT") or cfg.smtp.port),
        smtp_secure=(secure_env == "true") if secure_env is not None else cfg.smtp.secure,
        smtp_user=smtp_user,
        smtp_password=os.getenv("SMTP_PASSWORD", cfg.smtp.password or "") or None,
    )


def _us_date(value: Any) -> str:
    # en-US 表記 (M/D/YYYY)
    if value is None or value == "":
        return ""
    if isinstance(value, str):
        try:
            value = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return value
    if isinstance(value, (datetime, date)):
        return f"{value.month}/{value.day}/{value.year}"
    return str(value)


def _amount(value: Any) -> float | None:
    if value is None or value == "":
        return None
    # NUMERIC(12,2) は Decimal で返る
    return float(value)


def _report_frame(records: list[dict[str, Any]]) -> pd.DataFrame:
    rows = []
    for item in records:
        rows.append(
            {
                "ID": str(item.get("id") or ""),
                "Check #": item.get("check_number") or "",
                "Check Amount": _amount(item.get("check_amount")),
                "Owner #": item.get("owner_number") or "",
                "Check Date": _us_date(item.get("check_date")),
                "Notes": item.get("notes") or "",
                "Completion Status": item.get("completion_status") or "",
                "Request Date": _us_date(item.get("request_date")),
                "Created By": item.get("created_by") or "",
            }
        )
    return pd.DataFrame(rows, columns=[header for header, _, _ in REPORT_COLUMNS])


def _style_sheet(ws: Any, row_count: int) -> None:
    ws.freeze_panes = "A2"
    for idx, (_, _, width) in enumerate(REPORT_COLUMNS, start=1):
        ws.column_dimensions[get_column_letter(idx)].width = width

    for cell in ws[1]:
        cell.font = Font(bold=True, color="FFFFFFFF", size=11)
        cell.fill = HEADER_FILL
        cell.alignment = Alignment(vertical="center", horizontal="center")
    ws.row_dimensions[1].height = 28

    amount_col = [f for _, f, _ in REPORT_COLUMNS].index("check_amount") + 1
    for row_idx in range(1, row_count + 2):
        for cell in ws[row_idx]:
            cell.border = CELL_BORDER
            if row_idx > 1 and row_idx % 2 == 0:
                cell.fill = STRIPE_FILL
        if row_idx > 1:
            ws.cell(row=row_idx, column=amount_col).number_format = "$#,##0.00"
            ws.cell(row=row_idx, column=1).font = Font(size=9, color="FF8C93A3")

    last_col = get_column_letter(len(REPORT_COLUMNS))
    ws.auto_filter.ref = f"A1:{last_col}{row_count + 1}"


def build_pending_workbook(records: list[dict[str, Any]]) -> bytes:
    """Render Pending records as an .xlsx workbook (single sheet)."""
    df = _report_frame(records)
    buf = io.BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name=REPORT_SHEET, index=False)
        _style_sheet(writer.sheets[REPORT_SHEET], len(df))
    return buf.getvalue()


def local_now(timezone: str = "UTC") -> datetime:
    # 月ラベルとファイル名は設定タイムゾーンの暦で決める
    return datetime.now(ZoneInfo(timezone))


def report_filename(now: datetime) -> str:
    return f"Pending_Void_Checks_{now:%Y-%m}-18.xlsx"


def build_message(
    count: int, workbook: bytes, settings: ReportSettings, now: datetime
) -> EmailMessage:
    month_year = f"{now:%B %Y}"
    plural = "s" if count > 1 else ""
    msg = EmailMessage()
    msg["Subject"] = f"Pending Void Checks Report — {month_year}"
    msg["From"] = settings.sender or ""
    msg["To"] = ", ".join(settings.recipients)
    msg.set_content(
        f"There are currently {count} pending void check request{plural}.\n"
        "Please see the attached spreadsheet for full details.\n"
    )
    msg.add_alternative(
        f"<h2>Pending Void Checks Report</h2><p>{month_year}</p>"
        f"<p>There are currently <strong>{count}</strong> pending void check request{plural}.</p>"
        "<p>Please see the attached spreadsheet for full details.</p>",
        subtype="html",
    )
    maintype, subtype = XLSX_MIME
    msg.add_attachment(workbook, maintype=maintype, subtype=subtype, filename=report_filename(now))
    return msg


def smtp_transport(msg: EmailMessage, settings: ReportSettings) -> None:
    if not settings.smtp_host:
        raise ReportError("SMTP host not configured")
    smtp_cls = smtplib.SMTP_SSL if settings.smtp_secure else smtplib.SMTP
    with smtp_cls(settings.smtp_host, settings.smtp_port, timeout=30) as smtp:
        if not settings.smtp_secure:
            smtp.ehlo()
            if smtp.has_extn("starttls"):
                smtp.starttls()
                smtp.ehlo()
        if settings.smtp_user:
            smtp.login(settings.smtp_user, settings.smtp_password or "")
        smtp.send_message(msg)


def run_pending_report(
    store: RecordStore,
    cfg: ReportConfig,
    *,
    now: datetime | None = None,
    transport: Transport | None = None,
) -> ReportOutcome:
    """Fetch Pending records, build the workbook and email it.

    Raises:
        ReportError: no recipients configured / SMTP not configured / send failed
        StoreError: the store could not be read
    """
    now = now or datetime.now(UTC)
    pending = store.list_records(status=CompletionStatus.PENDING.value)
    if not pending:
        logger.info("No pending items found. Skipping email.")
        return ReportOutcome(success=True, message="No pending items to report")

    settings = resolve_report_settings(cfg)
    if not settings.recipients:
        raise ReportError("No recipients configured")

    workbook = build_pending_workbook(pending)
    msg = build_message(len(pending), workbook, settings, now)
    try:
        (transport or smtp_transport)(msg, settings)
    except (smtplib.SMTPException, OSError) as e:
        raise ReportError(f"Failed to send report: {e}") from e

    recipients = ", ".join(settings.recipients)
    logger.info("Pending report sent: %d items to %s", len(pending), recipients)
    return ReportOutcome(
        success=True,
        message=f"Report sent with {len(pending)} pending items",
        recipients=recipients,
        item_count=len(pending),
    )
