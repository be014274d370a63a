# app/crud/sync_events.py
from typing import List, Optional

from sqlalchemy import desc
from sqlalchemy.orm import Session

from app.models.sync_event import SyncEvent

def record_sync_event(db: Session, result) -> SyncEvent:
    """Persist a finished job's outcome. `result` is a jobs.SyncResult."""
    evt = SyncEvent(
        direction=result.direction,
        key=str(result.key),
        ok=result.ok,
        status_code=result.status_code,
        detail=result.detail,
    )
    db.add(evt)
    db.commit()
    return evt

def list_sync_events(db: Session, limit: int = 100, key: Optional[str] = None) -> List[SyncEvent]:
    q = db.query(SyncEvent)
    if key:
        q = q.filter(SyncEvent.key == key)
    return q.order_by(desc(SyncEvent.created_at)).limit(int(limit)).all()
