# app/api/routes/health.py
from fastapi import APIRouter

from app.scheduler import scheduler

router = APIRouter()

@router.get("/health")
def health():
    return {"ok": True, "scheduler_running": scheduler.running}
