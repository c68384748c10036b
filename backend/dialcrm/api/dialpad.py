import logging

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from dialcrm.core.config import settings
from dialcrm.core.database import get_db
from dialcrm.core.deps import get_current_user, get_dialpad_client
from dialcrm.core.errors import CallerIdError
from dialcrm.models import User
from dialcrm.schemas import (
    MakeCallRequest,
    MakeCallResponse,
    SendSmsRequest,
    SendSmsResponse,
    SyncRequest,
    SyncResponse,
)
from dialcrm.services.calls import record_outbound_call
from dialcrm.services.dialpad_client import DialpadClient
from dialcrm.services.sms import send_sms
from dialcrm.services.sync import sync_calls
from dialcrm.services.tokens import get_valid_access_token

router = APIRouter(prefix="/dialpad", tags=["dialpad"])
logger = logging.getLogger(__name__)


@router.post("/make-call", response_model=MakeCallResponse)
def make_call(
    payload: MakeCallRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    client: DialpadClient = Depends(get_dialpad_client),
):
    logger.info("Initiating call to %s for user %s", payload.to_number, user.id)
    access_token = get_valid_access_token(db, user, client)
    caller_id = payload.from_number or settings.dialpad_from_number
    if not caller_id:
        raise CallerIdError(
            "Missing outbound caller ID",
            details="Set DIALPAD_FROM_NUMBER or pass from_number matching a verified Dialpad caller ID",
        )
    call = client.create_call(
        access_token,
        payload.to_number,
        caller_id,
        external_id=payload.deal_id or payload.contact_id,
    )
    try:
        record_outbound_call(
            db,
            user.id,
            call,
            payload.to_number,
            caller_id,
            contact_id=payload.contact_id,
            deal_id=payload.deal_id,
        )
    except Exception:
        db.rollback()
        logger.exception("Failed to log outbound call to %s", payload.to_number)
    return MakeCallResponse(call=call)


@router.post("/sync", response_model=SyncResponse)
def sync(
    payload: SyncRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    client: DialpadClient = Depends(get_dialpad_client),
):
    return sync_calls(
        db,
        client,
        start_time=payload.start_time,
        end_time=payload.end_time,
        limit=payload.limit,
    )


@router.post("/send-sms", response_model=SendSmsResponse)
def send(
    payload: SendSmsRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    client: DialpadClient = Depends(get_dialpad_client),
):
    sms = send_sms(
        db,
        client,
        user,
        payload.to_number,
        payload.message,
        contact_id=payload.contact_id,
        deal_id=payload.deal_id,
        company_id=payload.company_id,
    )
    message_id = sms.get("id")
    return SendSmsResponse(message_id=str(message_id) if message_id else None, sms=sms)
