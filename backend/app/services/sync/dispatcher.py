# app/services/sync/dispatcher.py
"""
Record change dispatcher.

Classifies each flushed batch of contacts and enqueues deferred sync jobs:

  pre-insert   -> assign a random inbound external id when missing
  post-insert  -> external id <= 100: pull the remote user (inbound)
  post-update  -> external id changed to > 100: push the contact (outbound)

The classification itself (RecordChangeDispatcher) knows nothing about
SQLAlchemy; `register_contact_hooks` feeds it from session events and only
hands jobs to the queue once the transaction commits.

A session opened by a sync job carries `info["in_sync_job"] = True`. Updates
flushed from such a session are ignored, otherwise the outbound job's own
`last_synced_at` write would trigger another push.
"""
from __future__ import annotations

import logging
import random
from dataclasses import dataclass
from typing import Dict, Hashable, Iterable, List, Optional, Protocol

from sqlalchemy import event
from sqlalchemy.orm import Session, SessionTransaction, attributes

from app.models.contact import Contact
from app.services.sync.identifiers import (
    assign_external_id,
    is_inbound,
    is_outbound,
    parse_external_id,
)

logger = logging.getLogger(__name__)

IN_SYNC_JOB = "in_sync_job"
_PENDING_KEY = "contact_sync_pending"


class JobQueue(Protocol):
    def enqueue_inbound(self, external_id: str) -> None: ...

    def enqueue_outbound(self, contact_id: str) -> None: ...


@dataclass(frozen=True)
class SyncContext:
    in_sync_job: bool = False

    @classmethod
    def of(cls, session: Session) -> "SyncContext":
        return cls(in_sync_job=bool(session.info.get(IN_SYNC_JOB)))


@dataclass(frozen=True)
class ContactChange:
    contact: Contact
    previous_external_id: Optional[str]


class PendingJobs:
    """
    Jobs collected for one transaction level, de-duplicated per record.
    Inbound jobs are keyed by the inserted contact, outbound by contact id.
    """

    def __init__(self) -> None:
        self.inbound: Dict[Hashable, str] = {}
        self.outbound: Dict[str, None] = {}

    def add_inbound(self, key: Hashable, external_id: str) -> None:
        self.inbound[key] = external_id

    def add_outbound(self, contact_id: str) -> None:
        self.outbound[contact_id] = None

    def merge(self, other: "PendingJobs") -> None:
        self.inbound.update(other.inbound)
        self.outbound.update(other.outbound)

    def __bool__(self) -> bool:
        return bool(self.inbound or self.outbound)


class RecordChangeDispatcher:
    def __init__(self, queue: JobQueue, rng: random.Random | None = None) -> None:
        self.queue = queue
        self.rng = rng

    # -- classification -------------------------------------------------

    def pre_insert(self, contacts: Iterable[Contact]) -> int:
        return sum(1 for c in contacts if assign_external_id(c, self.rng))

    def inbound_candidates(self, contacts: Iterable[Contact], context: SyncContext) -> List[str]:
        # rows inserted by a sync job are the result of an inbound pull already
        if context.in_sync_job:
            return []
        out: List[str] = []
        for c in contacts:
            n = parse_external_id(c.external_id)
            if is_inbound(n):
                out.append(str(c.external_id).strip())
        return out

    def outbound_candidates(self, changes: Iterable[ContactChange], context: SyncContext) -> List[str]:
        if context.in_sync_job:
            return []
        out: List[str] = []
        for ch in changes:
            new = parse_external_id(ch.contact.external_id)
            if not is_outbound(new):
                continue
            if new == parse_external_id(ch.previous_external_id):
                continue
            out.append(ch.contact.id)
        return out

    # -- dispatch ----------------------------------------------------------

    def post_insert(self, contacts: Iterable[Contact], context: SyncContext) -> List[str]:
        ids = self.inbound_candidates(contacts, context)
        pending = PendingJobs()
        for i, external_id in enumerate(ids):
            pending.add_inbound(i, external_id)
        self.flush_jobs(pending)
        return ids

    def post_update(self, changes: Iterable[ContactChange], context: SyncContext) -> List[str]:
        ids = self.outbound_candidates(changes, context)
        pending = PendingJobs()
        for contact_id in ids:
            pending.add_outbound(contact_id)
        self.flush_jobs(pending)
        return list(pending.outbound)

    def flush_jobs(self, pending: PendingJobs) -> None:
        for external_id in pending.inbound.values():
            self.queue.enqueue_inbound(external_id)
        for contact_id in pending.outbound:
            self.queue.enqueue_outbound(contact_id)
        if pending:
            logger.info(
                "[sync] dispatched inbound=%s outbound=%s",
                len(pending.inbound), len(pending.outbound),
            )


# -----------------------------------------------------------------------------
# SQLAlchemy wiring
# -----------------------------------------------------------------------------
def _contacts(objs) -> List[Contact]:
    return [o for o in objs if isinstance(o, Contact)]


def _previous_external_id(contact: Contact) -> Optional[str]:
    hist = attributes.get_history(contact, "external_id")
    if hist.deleted:
        return hist.deleted[0]
    if hist.unchanged:
        return hist.unchanged[0]
    return None


def _boundary(transaction: SessionTransaction) -> SessionTransaction:
    """Nearest enclosing savepoint or root transaction."""
    while not transaction.nested and transaction.parent is not None:
        transaction = transaction.parent
    return transaction


def _pending_by_tx(session: Session) -> Dict[SessionTransaction, PendingJobs]:
    return session.info.setdefault(_PENDING_KEY, {})


def _current_level(session: Session) -> SessionTransaction:
    return session.get_nested_transaction() or session.get_transaction()


def register_contact_hooks(target, dispatcher: RecordChangeDispatcher) -> None:
    """
    Attach the dispatcher to a sessionmaker (or Session class).

    Jobs are collected per transaction level: a released savepoint hands its
    jobs to the enclosing level, a rolled back one discards them, and only the
    root commit passes them to the queue.

    Only ORM unit-of-work flushes are classified. Bulk statements such as
    `session.execute(update(Contact)...)` bypass the flush and queue nothing;
    write contacts through mapped objects when they must sync.
    """

    @event.listens_for(target, "before_flush")
    def _before_flush(session, flush_context, instances):
        assigned = dispatcher.pre_insert(_contacts(session.new))
        if assigned:
            logger.debug("[sync] pre-insert assigned %s external ids", assigned)

    @event.listens_for(target, "after_flush")
    def _after_flush(session, flush_context):
        # new/dirty and attribute history still hold their pre-flush state here
        context = SyncContext.of(session)
        level = _pending_by_tx(session).setdefault(_current_level(session), PendingJobs())
        for c in _contacts(session.new):
            for external_id in dispatcher.inbound_candidates([c], context):
                level.add_inbound(c.id, external_id)
        if context.in_sync_job:
            return
        changes = [
            ContactChange(c, _previous_external_id(c))
            for c in _contacts(session.dirty)
            if attributes.get_history(c, "external_id").has_changes()
        ]
        for contact_id in dispatcher.outbound_candidates(changes, context):
            level.add_outbound(contact_id)

    @event.listens_for(target, "after_commit")
    def _after_commit(session):
        savepoint = session.get_nested_transaction()
        if savepoint is not None:
            # released savepoint: its jobs wait for the enclosing transaction
            by_tx = _pending_by_tx(session)
            released = by_tx.pop(savepoint, None)
            if released:
                parent = _boundary(savepoint.parent)
                by_tx.setdefault(parent, PendingJobs()).merge(released)
            return
        by_tx = session.info.pop(_PENDING_KEY, None) or {}
        pending = by_tx.get(session.get_transaction())
        if pending:
            dispatcher.flush_jobs(pending)

    @event.listens_for(target, "after_soft_rollback")
    def _after_rollback(session, previous_transaction):
        level = _boundary(previous_transaction)
        if level.nested:
            _pending_by_tx(session).pop(level, None)
        else:
            session.info.pop(_PENDING_KEY, None)
