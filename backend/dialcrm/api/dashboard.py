from datetime import datetime, timedelta

from fastapi import APIRouter, Depends, Query
from sqlalchemy import func
from sqlalchemy.orm import Session

from dialcrm.core.clock import utcnow
from dialcrm.core.database import get_db
from dialcrm.core.deps import get_current_user
from dialcrm.models import CallAnalytics, CallRecord, User
from dialcrm.schemas import DashboardSummary

router = APIRouter(prefix="/dashboard", tags=["dashboard"])


def _range_start(range_value: str) -> datetime:
    now = utcnow()
    if range_value == "today":
        return now.replace(hour=0, minute=0, second=0, microsecond=0)
    if range_value == "7d":
        return now - timedelta(days=7)
    return now - timedelta(days=30)


@router.get("/summary", response_model=DashboardSummary)
def summary(
    range: str = Query("today", pattern="^(today|7d|30d)$"),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    start = _range_start(range)
    base = db.query(CallRecord).filter(CallRecord.call_timestamp >= start)
    total = base.with_entities(func.count(CallRecord.id)).scalar() or 0
    inbound = base.with_entities(func.count(CallRecord.id)).filter(CallRecord.direction == "inbound").scalar() or 0
    answered = base.with_entities(func.count(CallRecord.id)).filter(CallRecord.outcome == "answered").scalar() or 0
    duration = base.with_entities(func.sum(CallRecord.duration_seconds)).scalar() or 0
    sentiment = (
        db.query(func.avg(CallAnalytics.sentiment_score))
        .join(CallRecord, CallRecord.id == CallAnalytics.call_id)
        .filter(CallRecord.call_timestamp >= start)
        .scalar()
    )
    return DashboardSummary(
        total_calls=total,
        inbound_calls=inbound,
        outbound_calls=total - inbound,
        answered_calls=answered,
        total_duration_seconds=int(duration),
        average_sentiment=round(float(sentiment), 2) if sentiment is not None else None,
    )
