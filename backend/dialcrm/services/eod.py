import logging
from html import escape
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from dialcrm.core.clock import as_utc, utcnow
from dialcrm.core.config import settings
from dialcrm.core.errors import ReportNotFoundError
from dialcrm.models import EodReport, User
from dialcrm.services.email import EmailRelay

logger = logging.getLogger(__name__)


def _clock(value) -> str:
    value = as_utc(value)
    return value.strftime("%H:%M") if value else ""


def render_report_email(report: EodReport, user_name: str, user_email: str) -> str:
    started = _clock(report.started_at) or "N/A"
    ended = _clock(report.ended_at) or "In Progress"
    parts = [
        "<h2>EOD Report Submitted</h2>",
        f"<p><strong>{escape(user_name)}</strong> ({escape(user_email)}) has submitted their End of Day report.</p>",
        f"<p><strong>Date:</strong> {report.report_date.isoformat()}</p>",
        f"<p><strong>Time:</strong> {started} - {ended}</p>",
    ]
    if report.summary:
        summary = escape(report.summary).replace("\n", "<br/>")
        parts.append(f"<p><strong>Summary:</strong><br/>{summary}</p>")
    return "\n".join(parts)


def notify_eod(
    db: Session,
    relay: EmailRelay,
    eod_id: int,
    user_email: Optional[str] = None,
    user_name: Optional[str] = None,
) -> Dict[str, Any]:
    if not relay.enabled:
        logger.info("RESEND_API_KEY not configured, skipping EOD notification")
        return {"success": True, "skipped": True}
    report = db.get(EodReport, eod_id)
    if not report:
        raise ReportNotFoundError("Report not found", details={"eod_id": eod_id})
    owner = db.get(User, report.user_id)
    name = user_name or (owner.full_name or owner.username if owner else "Unknown user")
    email = user_email or (owner.email if owner and owner.email else "")
    relay.send(
        [settings.eod_admin_email],
        f"EOD Report Submitted - {name}",
        render_report_email(report, name, email),
    )
    report.notified_at = utcnow()
    db.commit()
    return {"success": True}
