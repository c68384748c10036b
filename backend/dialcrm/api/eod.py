from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from dialcrm.core.database import get_db
from dialcrm.core.deps import get_current_user, get_email_relay
from dialcrm.models import EodReport, User
from dialcrm.schemas import EodNotifyRequest, EodReportCreate, EodReportOut
from dialcrm.services.email import EmailRelay
from dialcrm.services.eod import notify_eod

router = APIRouter(prefix="/eod", tags=["eod"])


@router.post("/reports", response_model=EodReportOut, status_code=201)
def submit_report(payload: EodReportCreate, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    report = EodReport(user_id=user.id, **payload.model_dump())
    db.add(report)
    db.commit()
    db.refresh(report)
    return report


@router.post("/notify")
def notify(
    payload: EodNotifyRequest,
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
    relay: EmailRelay = Depends(get_email_relay),
) -> dict:
    return notify_eod(db, relay, payload.eod_id, payload.user_email, payload.user_name)
