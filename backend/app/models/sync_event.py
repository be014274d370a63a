# app/models/sync_event.py
from sqlalchemy import Boolean, Column, DateTime, Integer, String, Text
from sqlalchemy.sql import func
import uuid

from app.models.base import Base

def _uuid() -> str:
    return str(uuid.uuid4())

class SyncEvent(Base):
    __tablename__ = "sync_events"

    id = Column(String, primary_key=True, default=_uuid)
    direction = Column(String, nullable=False)  # 'inbound' | 'outbound'
    key = Column(String, index=True, nullable=False)  # external id or contact id
    ok = Column(Boolean, nullable=False, default=False)
    status_code = Column(Integer, nullable=True)
    detail = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
