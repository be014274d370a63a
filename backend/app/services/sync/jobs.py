# app/services/sync/jobs.py
"""
Deferred sync job bodies.

Each job opens its own session flagged `in_sync_job`, performs one HTTP round
trip against the directory and writes at most one contact. Jobs never raise:
every outcome comes back as a SyncResult, is logged, and is recorded in the
sync_events table.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy.orm import Session, sessionmaker

from app.crud.contacts import mark_synced, read_sync_fields, upsert_by_external_id
from app.crud.sync_events import record_sync_event
from app.services.directory.client import DirectoryClient, client_from_settings
from app.services.sync.dispatcher import IN_SYNC_JOB
from app.services.sync.mapper import contact_fields_from_remote, contact_to_remote_payload

logger = logging.getLogger(__name__)

INBOUND = "inbound"
OUTBOUND = "outbound"


@dataclass(frozen=True)
class SyncResult:
    direction: str
    key: str
    ok: bool
    status_code: Optional[int] = None
    detail: Optional[str] = None
    contact_id: Optional[str] = None


def _open_job_session(session_factory: Optional[sessionmaker]) -> Session:
    if session_factory is None:
        from app.db.session import SessionLocal
        session_factory = SessionLocal
    return session_factory(info={IN_SYNC_JOB: True})


def _finish(db: Session, result: SyncResult) -> SyncResult:
    if result.ok:
        logger.info("[sync] %s key=%s ok status=%s", result.direction, result.key, result.status_code)
    else:
        logger.warning(
            "[sync] %s key=%s failed status=%s detail=%s",
            result.direction, result.key, result.status_code, result.detail,
        )
    try:
        record_sync_event(db, result)
    except Exception:
        db.rollback()
        logger.exception("[sync] could not record sync event for %s key=%s", result.direction, result.key)
    return result


def run_inbound_sync(
    external_id: str,
    *,
    session_factory: Optional[sessionmaker] = None,
    client: Optional[DirectoryClient] = None,
) -> SyncResult:
    """Pull remote user `external_id` and upsert it as a contact."""
    external_id = str(external_id).strip()
    owns_client = client is None
    client = client or client_from_settings()
    db = _open_job_session(session_factory)
    try:
        try:
            resp = client.get_user(external_id)
            if resp.status_code != 200:
                return _finish(db, SyncResult(INBOUND, external_id, False, resp.status_code, "unexpected status"))

            fields = contact_fields_from_remote(resp.json())
            fields["external_id"] = external_id
            contact, created = upsert_by_external_id(db, external_id, fields)
            db.commit()
        except Exception as e:
            db.rollback()
            logger.exception("[sync] inbound external_id=%s raised", external_id)
            return _finish(db, SyncResult(INBOUND, external_id, False, None, f"{type(e).__name__}: {e}"))

        return _finish(db, SyncResult(
            INBOUND, external_id, True, resp.status_code,
            "created" if created else "updated", contact_id=contact.id,
        ))
    finally:
        db.close()
        if owns_client:
            client.close()


def run_outbound_sync(
    contact_id: str,
    *,
    session_factory: Optional[sessionmaker] = None,
    client: Optional[DirectoryClient] = None,
) -> SyncResult:
    """Push contact `contact_id` to the directory and stamp last_synced_at."""
    owns_client = client is None
    client = client or client_from_settings()
    db = _open_job_session(session_factory)
    try:
        try:
            row = read_sync_fields(db, contact_id)
            resp = client.add_user(contact_to_remote_payload(row))
            if not (200 <= resp.status_code < 300):
                return _finish(db, SyncResult(OUTBOUND, contact_id, False, resp.status_code, "unexpected status"))

            mark_synced(db, contact_id, datetime.now(timezone.utc))
            db.commit()
        except Exception as e:
            db.rollback()
            logger.exception("[sync] outbound contact_id=%s raised", contact_id)
            return _finish(db, SyncResult(OUTBOUND, contact_id, False, None, f"{type(e).__name__}: {e}"))

        return _finish(db, SyncResult(OUTBOUND, contact_id, True, resp.status_code, contact_id=contact_id))
    finally:
        db.close()
        if owns_client:
            client.close()
