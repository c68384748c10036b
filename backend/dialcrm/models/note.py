from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.sql import func

from dialcrm.core.database import Base


class Note(Base):
    __tablename__ = "notes"

    id = Column(Integer, primary_key=True)
    deal_id = Column(String(64), index=True)
    contact_id = Column(String(64), index=True)
    company_id = Column(String(64))
    content = Column(Text, nullable=False)
    note_type = Column(String(40), nullable=False, default="general")
    source_call_id = Column(Integer, ForeignKey("call_records.id"), index=True)
    created_by = Column(Integer, ForeignKey("users.id"))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
