from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.crud.contacts import get_contact
from app.crud.sync_events import list_sync_events
from app.schemas.sync import SyncEventList, SyncQueued
from app.services.sync.identifiers import parse_external_id
from app.services.sync.queue import SyncJobQueue, get_sync_queue

router = APIRouter(prefix="/sync", tags=["sync"])


@router.post("/inbound/{external_id}", response_model=SyncQueued, status_code=status.HTTP_202_ACCEPTED)
def queue_inbound(external_id: str, queue: SyncJobQueue = Depends(get_sync_queue)):
    if parse_external_id(external_id) is None:
        raise HTTPException(status_code=400, detail="external_id must be an integer")
    queue.enqueue_inbound(external_id)
    return {"queued": True, "direction": "inbound", "key": external_id}


@router.post("/outbound/{id}", response_model=SyncQueued, status_code=status.HTTP_202_ACCEPTED)
def queue_outbound(
    id: str,
    db: Session = Depends(get_db),
    queue: SyncJobQueue = Depends(get_sync_queue),
):
    if not get_contact(db, id):
        raise HTTPException(status_code=404, detail="Contact not found")
    queue.enqueue_outbound(id)
    return {"queued": True, "direction": "outbound", "key": id}


@router.get("/events", response_model=SyncEventList)
def sync_events(
    key: Optional[str] = Query(None),
    limit: int = Query(100, ge=1, le=1000),
    db: Session = Depends(get_db),
):
    return {"items": list_sync_events(db, limit=limit, key=key)}
