import logging
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from dialcrm.core.clock import utcnow
from dialcrm.models import SmsMessage, User
from dialcrm.services.dialpad_client import DialpadClient

logger = logging.getLogger(__name__)


def send_sms(
    db: Session,
    client: DialpadClient,
    user: User,
    to_number: str,
    message: str,
    contact_id: Optional[str] = None,
    deal_id: Optional[str] = None,
    company_id: Optional[str] = None,
) -> Dict[str, Any]:
    logger.info("Sending SMS to %s", to_number)
    sms = client.send_sms(to_number, message)
    try:
        db.add(
            SmsMessage(
                dialpad_message_id=str(sms["id"]) if sms.get("id") else None,
                contact_id=contact_id,
                deal_id=deal_id,
                company_id=company_id,
                direction="outbound",
                from_number=sms.get("from_number") or sms.get("from") or "CRM",
                to_number=to_number,
                message_body=message,
                status="sent",
                sent_at=utcnow(),
                provider_payload=sms,
                created_by=user.id,
            )
        )
        db.commit()
    except Exception:
        db.rollback()
        logger.exception("Error storing SMS sent to %s", to_number)
    return sms
