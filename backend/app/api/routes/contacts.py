# app/api/routes/contacts.py
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.crud.contacts import (
    create_contact as crud_create,
    get_contact,
    keep_digits_plus,
    list_contacts as crud_list,
    update_contact as crud_update,
)
from app.models.contact import Contact
from app.schemas.contacts import ContactCreate, ContactList, ContactOut, ContactUpdate
from app.services.sync.identifiers import parse_external_id

router = APIRouter(prefix="/contacts", tags=["contacts"])


def _clean(payload, *, partial: bool) -> dict:
    values = payload.model_dump(exclude_unset=partial)
    for k in ("first_name", "last_name", "email"):
        if k in values and values[k] is not None:
            values[k] = values[k].strip() or None
    if values.get("email"):
        values["email"] = values["email"].lower()
    if "phone" in values:
        values["phone"] = keep_digits_plus(values["phone"])
    ext = values.get("external_id")
    if ext is not None and parse_external_id(ext) is None:
        raise HTTPException(status_code=400, detail="externalId must be an integer")
    return values


# GET /api/contacts/list
@router.get("/list", response_model=ContactList)
def list_contacts(
    search: str = Query("", alias="search"),
    page: int = Query(1, ge=1),
    limit: int = Query(50, ge=1, le=1000),
    db: Session = Depends(get_db),
):
    items, total = crud_list(db, page=page, limit=limit, search=search.strip())
    return {"items": items, "page": page, "limit": limit, "total": total}


# GET /api/contacts/{id}
@router.get("/{id}", response_model=ContactOut)
def read_contact(id: str, db: Session = Depends(get_db)):
    obj = get_contact(db, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Contact not found")
    return obj


# POST /api/contacts (externalId is assigned when omitted)
@router.post("", response_model=ContactOut, status_code=status.HTTP_201_CREATED)
def create_contact(payload: ContactCreate, db: Session = Depends(get_db)):
    values = _clean(payload, partial=False)
    return crud_create(db, values)


# PATCH /api/contacts/{id} (partial update; only sent fields change)
@router.patch("/{id}", response_model=ContactOut)
def update_contact(id: str, payload: ContactUpdate, db: Session = Depends(get_db)):
    obj: Optional[Contact] = get_contact(db, id)
    if not obj:
        raise HTTPException(status_code=404, detail="Contact not found")
    values = _clean(payload, partial=True)
    return crud_update(db, obj, values)
