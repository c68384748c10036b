from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, JSON, String
from sqlalchemy.sql import func

from dialcrm.core.database import Base


class CallAnalytics(Base):
    __tablename__ = "call_analytics"

    id = Column(Integer, primary_key=True)
    call_id = Column(Integer, ForeignKey("call_records.id"), nullable=False, unique=True)
    sentiment_score = Column(Float)
    sentiment_label = Column(String(20))
    key_topics = Column(JSON, default=list)
    action_items = Column(JSON, default=list)
    call_quality_score = Column(Integer)
    talk_time_ratio = Column(Float)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
