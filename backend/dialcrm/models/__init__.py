from dialcrm.models.user import User
from dialcrm.models.dialpad_token import DialpadToken
from dialcrm.models.oauth_state import OAuthState
from dialcrm.models.call_record import CallRecord
from dialcrm.models.webhook_event import WebhookEvent
from dialcrm.models.call_analytics import CallAnalytics
from dialcrm.models.note import Note
from dialcrm.models.enrichment_task import EnrichmentTask
from dialcrm.models.sms_message import SmsMessage
from dialcrm.models.eod_report import EodReport
from dialcrm.models.audit_log import AuditLog

__all__ = [
    "User",
    "DialpadToken",
    "OAuthState",
    "CallRecord",
    "WebhookEvent",
    "CallAnalytics",
    "Note",
    "EnrichmentTask",
    "SmsMessage",
    "EodReport",
    "AuditLog",
]
