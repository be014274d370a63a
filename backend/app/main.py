import logging
import os
from pathlib import Path
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.routes.contacts import router as contacts_router
from app.api.routes.health import router as health_router
from app.api.routes.sync import router as sync_router

from app.core.config import settings
from app.db.base import create_all
from app.db.session import SessionLocal, engine
from app.scheduler import init_scheduler
from app.services.sync.dispatcher import RecordChangeDispatcher, register_contact_hooks
from app.services.sync.queue import get_sync_queue

logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


def _parse_origins(env_value: str) -> list[str]:
    if not env_value:
        return []
    raw = [p.strip() for p in env_value.replace("\n", ",").split(",")]
    cleaned = []
    for v in raw:
        if not v:
            continue
        v = v.rstrip("/")
        if v not in cleaned:
            cleaned.append(v)
    return cleaned


app = FastAPI(title=settings.PROJECT_NAME, version="1.0")

env_origins = os.getenv("CORS_ORIGIN", "")
allowed_origins = _parse_origins(env_origins) or settings.cors_origins_list

app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=False,
    allow_methods=["GET", "POST", "PATCH", "OPTIONS", "HEAD"],
    allow_headers=["*"],
)

app.include_router(health_router, tags=["health"])
app.include_router(contacts_router, prefix="/api", tags=["contacts"])
app.include_router(sync_router, prefix="/api", tags=["sync"])

init_scheduler(app)

_hooks_installed = False


@app.on_event("startup")
def _startup_db() -> None:
    create_all(engine)
    if settings.DATABASE_URL.startswith("sqlite:///"):
        logger.info("[DB] Using: %s", Path(settings.DATABASE_URL.replace("sqlite:///", "")).resolve())
    logger.info("[CORS] allow_origins = %s", allowed_origins)


@app.on_event("startup")
def _install_sync_hooks() -> None:
    global _hooks_installed
    if not settings.SYNC_HOOKS_ENABLED:
        logger.info("[sync] contact hooks disabled by env")
        return
    if _hooks_installed:
        return
    register_contact_hooks(SessionLocal, RecordChangeDispatcher(get_sync_queue()))
    _hooks_installed = True
    logger.info("[sync] contact hooks installed (directory=%s)", settings.DIRECTORY_BASE_URL)
