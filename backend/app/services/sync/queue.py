# app/services/sync/queue.py
from __future__ import annotations

import logging
from typing import Callable, Optional

from apscheduler.schedulers.base import BaseScheduler

logger = logging.getLogger(__name__)


class SyncJobQueue:
    """
    Fire-and-forget hand-off of sync jobs to a background scheduler.

    Each enqueue adds a one-shot job (no trigger = run once, now) that runs on
    the scheduler's thread pool, independent of every other job.
    """

    def __init__(
        self,
        scheduler: BaseScheduler,
        *,
        inbound: Optional[Callable[[str], object]] = None,
        outbound: Optional[Callable[[str], object]] = None,
    ) -> None:
        self.scheduler = scheduler
        if inbound is None or outbound is None:
            from app.services.sync.jobs import run_inbound_sync, run_outbound_sync
            inbound = inbound or run_inbound_sync
            outbound = outbound or run_outbound_sync
        self._inbound = inbound
        self._outbound = outbound

    def enqueue_inbound(self, external_id: str) -> None:
        self.scheduler.add_job(self._inbound, args=[external_id], name=f"inbound-sync:{external_id}")
        logger.debug("[sync] queued inbound external_id=%s", external_id)

    def enqueue_outbound(self, contact_id: str) -> None:
        self.scheduler.add_job(self._outbound, args=[contact_id], name=f"outbound-sync:{contact_id}")
        logger.debug("[sync] queued outbound contact_id=%s", contact_id)


_default_queue: Optional[SyncJobQueue] = None


def get_sync_queue() -> SyncJobQueue:
    """Queue backed by the app scheduler. Also used as a FastAPI dependency."""
    global _default_queue
    if _default_queue is None:
        from app.scheduler import scheduler
        _default_queue = SyncJobQueue(scheduler)
    return _default_queue
