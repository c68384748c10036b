from sqlalchemy import Column, DateTime, ForeignKey, Integer, JSON, String, Text
from sqlalchemy.sql import func

from dialcrm.core.database import Base


class SmsMessage(Base):
    __tablename__ = "sms_messages"

    id = Column(Integer, primary_key=True)
    dialpad_message_id = Column(String(64), index=True)
    contact_id = Column(String(64))
    deal_id = Column(String(64))
    company_id = Column(String(64))
    direction = Column(String(10), nullable=False, default="outbound")
    from_number = Column(String(64), nullable=False)
    to_number = Column(String(64), nullable=False)
    message_body = Column(Text, nullable=False)
    status = Column(String(20))
    sent_at = Column(DateTime(timezone=True))
    provider_payload = Column("metadata", JSON, default=dict)
    created_by = Column(Integer, ForeignKey("users.id"))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
