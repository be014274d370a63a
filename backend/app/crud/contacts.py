# app/crud/contacts.py
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, or_, select
from sqlalchemy.engine import Row
from sqlalchemy.orm import Session

from app.models.contact import Contact

# Columns the API and the inbound mapper may write
WRITABLE = {
    "external_id", "first_name", "last_name", "email", "phone", "birthdate",
    "mailing_street", "mailing_city", "mailing_postal_code",
    "mailing_state", "mailing_country",
}


class ContactNotFound(LookupError):
    """Raised when a contact id no longer resolves."""


def keep_digits_plus(s: str | None) -> str | None:
    if not s:
        return None
    out = []
    for ch in str(s):
        o = ord(ch)
        if (48 <= o <= 57) or ch in "+ -()":
            out.append(ch)
    res = "".join(out).strip()
    return res or None

def get_contact(db: Session, id: str) -> Optional[Contact]:
    return db.get(Contact, id)

def get_by_external_id(db: Session, external_id: str) -> Optional[Contact]:
    return db.execute(
        select(Contact).where(Contact.external_id == external_id).order_by(Contact.created_at)
    ).scalars().first()

def read_sync_fields(db: Session, id: str) -> Row:
    """Fresh read of the fields pushed to the directory."""
    row = db.execute(
        select(Contact.id, Contact.first_name, Contact.last_name, Contact.email, Contact.phone)
        .where(Contact.id == id)
    ).first()
    if row is None:
        raise ContactNotFound(id)
    return row

def apply_fields(obj: Contact, values: Dict[str, Any]) -> None:
    for k, v in values.items():
        if k in WRITABLE:
            setattr(obj, k, v)

def create_contact(db: Session, values: Dict[str, Any]) -> Contact:
    obj = Contact()
    apply_fields(obj, values)
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj

def update_contact(db: Session, obj: Contact, values: Dict[str, Any]) -> Contact:
    apply_fields(obj, values)
    db.commit()
    db.refresh(obj)
    return obj

def upsert_by_external_id(db: Session, external_id: str, values: Dict[str, Any]) -> Tuple[Contact, bool]:
    """Insert or overwrite the contact owning `external_id`. Caller commits."""
    row = get_by_external_id(db, external_id)
    created = row is None
    if created:
        row = Contact(external_id=external_id)
        db.add(row)
    apply_fields(row, values)
    row.external_id = external_id
    db.flush()
    return row, created

def mark_synced(db: Session, id: str, when: datetime) -> Contact:
    """Stamp last_synced_at on a single contact. Caller commits."""
    row = db.get(Contact, id)
    if row is None:
        raise ContactNotFound(id)
    row.last_synced_at = when
    db.flush()
    return row

def list_contacts(
    db: Session, *, page: int, limit: int, search: str = ""
) -> Tuple[List[Contact], int]:
    stmt = select(Contact)

    if search:
        like = f"%{search.lower()}%"
        stmt = stmt.where(or_(
            func.lower(Contact.first_name).like(like),
            func.lower(Contact.last_name).like(like),
            func.lower(Contact.email).like(like),
            Contact.external_id == search,
        ))

    total = db.execute(select(func.count()).select_from(stmt.subquery())).scalar_one()

    rows = db.execute(
        stmt.order_by(func.coalesce(Contact.updated_at, Contact.created_at).desc())
            .offset((page - 1) * limit)
            .limit(limit)
    ).scalars().all()

    return rows, total
