import json
import logging
import uuid
from typing import Any, List, Tuple

from jose import JWTError
from sqlalchemy.orm import Session

from dialcrm.core.clock import utcnow
from dialcrm.core.config import settings
from dialcrm.core.errors import AuthError
from dialcrm.core.security import decode_webhook_payload
from dialcrm.models import WebhookEvent
from dialcrm.services.calls import insert_defaults, map_dialpad_call, upsert_call
from dialcrm.services.enrichment import enqueue_enrichment

logger = logging.getLogger(__name__)

CALL_EVENTS = {"call.ended", "call.completed"}


def parse_webhook_body(body: bytes) -> Any:
    """Decode a delivery body.

    With a webhook secret configured Dialpad sends an HS256 JWT whose claims
    are the event; otherwise the body is JSON. Bodies that are not JSON are
    kept as ``{"raw": text}`` so they are still recorded.
    """
    text = body.decode("utf-8", errors="replace").strip()
    if settings.dialpad_webhook_secret:
        try:
            return decode_webhook_payload(text, settings.dialpad_webhook_secret)
        except JWTError as exc:
            logger.warning("Rejected Dialpad webhook with invalid signature")
            raise AuthError("Invalid webhook signature") from exc
    if not text:
        return {}
    try:
        return json.loads(text)
    except ValueError:
        return {"raw": text}


def record_event(db: Session, payload: Any) -> WebhookEvent:
    data = payload if isinstance(payload, dict) else {}
    event = WebhookEvent(
        event_type=str(data.get("type") or "unknown"),
        event_id=str(data.get("id") or uuid.uuid4()),
        payload=payload,
    )
    db.add(event)
    db.commit()
    db.refresh(event)
    return event


def ingest_webhook(db: Session, payload: Any) -> Tuple[WebhookEvent, List[int]]:
    """Store a Dialpad delivery and apply it when it reports a finished call.

    Returns the stored event and the ids of enrichment tasks queued for the
    call; the caller dispatches them once this transaction is committed.
    """
    event = record_event(db, payload)
    if event.event_type not in CALL_EVENTS:
        logger.info("Ignoring Dialpad webhook %s of type %s", event.id, event.event_type)
        return event, []
    call_data = payload.get("data") or payload.get("call")
    if not isinstance(call_data, dict):
        logger.warning("Dialpad webhook %s carries no call data", event.id)
        return event, []

    values = map_dialpad_call(call_data, default_status="completed")
    record, action = upsert_call(db, values, defaults=insert_defaults(stamp_now=True))
    event.processed = True
    event.processed_at = utcnow()
    task_ids: List[int] = []
    if call_data.get("transcript"):
        task_ids = [task.id for task in enqueue_enrichment(db, record.id)]
    db.commit()
    logger.info("Webhook %s %s call %s", event.id, action, record.id)
    return event, task_ids
