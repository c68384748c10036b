from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy import and_
from sqlalchemy.orm import Session

from dialcrm.core.clock import utcnow
from dialcrm.core.database import get_db
from dialcrm.core.deps import get_current_user
from dialcrm.models import CallAnalytics, CallRecord, Note, User
from dialcrm.schemas import CallAnalyticsOut, CallLogCreate, CallRecordOut, NoteOut, PaginatedCalls
from dialcrm.services.calls import derive_outcome, get_call, outbound_type_for

router = APIRouter(prefix="/calls", tags=["calls"])


@router.get("", response_model=PaginatedCalls)
def list_calls(
    from_date: Optional[datetime] = Query(default=None, alias="from"),
    to_date: Optional[datetime] = Query(default=None, alias="to"),
    direction: Optional[str] = Query(default=None, pattern="^(inbound|outbound)$"),
    deal_id: Optional[str] = None,
    contact_id: Optional[str] = None,
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: Session = Depends(get_db),
    user: User = Depends(get_current_user),
):
    query = db.query(CallRecord)
    filters = []
    if from_date:
        filters.append(CallRecord.call_timestamp >= from_date)
    if to_date:
        filters.append(CallRecord.call_timestamp <= to_date)
    if direction:
        filters.append(CallRecord.direction == direction)
    if deal_id:
        filters.append(CallRecord.related_deal_id == deal_id)
    if contact_id:
        filters.append(CallRecord.related_contact_id == contact_id)
    if filters:
        query = query.filter(and_(*filters))
    total = query.count()
    items = (
        query.order_by(CallRecord.call_timestamp.desc(), CallRecord.id.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
        .all()
    )
    return PaginatedCalls(items=items, total=total, page=page, page_size=page_size)


@router.post("", response_model=CallRecordOut, status_code=201)
def log_call(payload: CallLogCreate, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    data = payload.model_dump()
    data["call_timestamp"] = data["call_timestamp"] or utcnow()
    data["outcome"] = data["outcome"] or derive_outcome(payload.status)
    data["outbound_type"] = data["outbound_type"] or outbound_type_for(payload.direction)
    record = CallRecord(**data, rep_id=user.id)
    db.add(record)
    db.commit()
    db.refresh(record)
    return record


@router.get("/{call_id}", response_model=CallRecordOut)
def read_call(call_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    return get_call(db, call_id)


@router.get("/{call_id}/analytics", response_model=CallAnalyticsOut)
def read_call_analytics(call_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    analytics = db.query(CallAnalytics).filter(CallAnalytics.call_id == call_id).first()
    if not analytics:
        raise HTTPException(status_code=404, detail="Analytics not found")
    return analytics


@router.get("/{call_id}/notes", response_model=List[NoteOut])
def read_call_notes(call_id: int, db: Session = Depends(get_db), user: User = Depends(get_current_user)):
    get_call(db, call_id)
    return db.query(Note).filter(Note.source_call_id == call_id).order_by(Note.id).all()
