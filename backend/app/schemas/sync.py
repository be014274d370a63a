from datetime import datetime
from typing import List, Optional
from pydantic import BaseModel, ConfigDict


class SyncEventOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    direction: str
    key: str
    ok: bool
    status_code: Optional[int] = None
    detail: Optional[str] = None
    created_at: Optional[datetime] = None


class SyncEventList(BaseModel):
    items: List[SyncEventOut]


class SyncQueued(BaseModel):
    queued: bool
    direction: str
    key: str
