# app/models/contact.py
from sqlalchemy import Column, Date, DateTime, String
from sqlalchemy.orm import column_property
from sqlalchemy.sql import func
import uuid

from app.models.base import Base

def _uuid() -> str:
    return str(uuid.uuid4())

class Contact(Base):
    __tablename__ = "contacts"

    id = Column(String, primary_key=True, default=_uuid)

    # integer rendered as text; the previous value is loaded on change so
    # update hooks can compare before/after
    external_id = column_property(Column(String, index=True, nullable=True), active_history=True)

    first_name = Column(String, nullable=True)
    last_name = Column(String, nullable=True)
    email = Column(String, nullable=True, index=True)
    phone = Column(String, nullable=True)
    birthdate = Column(Date, nullable=True)

    mailing_street = Column(String, nullable=True)
    mailing_city = Column(String, nullable=True)
    mailing_postal_code = Column(String, nullable=True)
    mailing_state = Column(String, nullable=True)
    mailing_country = Column(String, nullable=True)

    last_synced_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=True)

    def __repr__(self) -> str:
        return f"<Contact id={self.id} external_id={self.external_id}>"
