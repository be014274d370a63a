# backend/app/scheduler.py
import logging

from apscheduler.executors.pool import ThreadPoolExecutor
from apscheduler.schedulers.background import BackgroundScheduler
from fastapi import FastAPI

from app.core.config import settings

logger = logging.getLogger(__name__)


def make_scheduler(max_workers: int = 4) -> BackgroundScheduler:
    return BackgroundScheduler(
        timezone="UTC",
        executors={"default": ThreadPoolExecutor(max_workers)},
        # sync jobs are one-shot: run late rather than drop them
        job_defaults={"misfire_grace_time": None, "coalesce": False},
    )


scheduler = make_scheduler(settings.SYNC_MAX_WORKERS)


def init_scheduler(app: FastAPI) -> None:
    """Attach scheduler start/stop to FastAPI lifecycle."""
    @app.on_event("startup")
    def _start_scheduler():
        if scheduler.running:
            return
        try:
            scheduler.start()
            logger.info("[scheduler] started (workers=%s)", settings.SYNC_MAX_WORKERS)
        except Exception:
            # If scheduler cannot start, keep the API running
            logger.exception("[scheduler] failed to start")

    @app.on_event("shutdown")
    def _stop_scheduler():
        if not scheduler.running:
            return
        try:
            scheduler.shutdown(wait=False)
        except Exception:
            logger.exception("[scheduler] shutdown failed")
