from sqlalchemy import Boolean, Column, DateTime, Integer, JSON, String
from sqlalchemy.sql import func

from dialcrm.core.database import Base


class WebhookEvent(Base):
    __tablename__ = "dialpad_webhooks"

    id = Column(Integer, primary_key=True)
    event_type = Column(String(80), nullable=False)
    event_id = Column(String(128), nullable=False)
    payload = Column(JSON, nullable=False)
    processed = Column(Boolean, default=False, nullable=False)
    processed_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
