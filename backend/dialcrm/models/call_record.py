from sqlalchemy import Column, DateTime, ForeignKey, Integer, JSON, String, Text, UniqueConstraint
from sqlalchemy.sql import func

from dialcrm.core.database import Base


class CallRecord(Base):
    __tablename__ = "call_records"
    __table_args__ = (UniqueConstraint("dialpad_call_id", name="uq_call_records_dialpad_call_id"),)

    id = Column(Integer, primary_key=True)
    dialpad_call_id = Column(String(64), nullable=True)
    direction = Column(String(10), nullable=False, default="outbound")
    duration_seconds = Column(Integer, default=0)
    caller_number = Column(String(64), index=True)
    callee_number = Column(String(64), index=True)
    status = Column(String(40))
    outcome = Column(String(64))
    outbound_type = Column(String(40))
    recording_url = Column(Text)
    transcript = Column(Text)
    dialpad_contact_id = Column(String(64))
    related_contact_id = Column(String(64), index=True)
    related_deal_id = Column(String(64), index=True)
    related_company_id = Column(String(64))
    rep_id = Column(Integer, ForeignKey("users.id"))
    call_timestamp = Column(DateTime(timezone=True), index=True)
    notes = Column(Text)
    dialpad_metadata = Column(JSON)
    revision = Column(Integer, nullable=False, default=1)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
