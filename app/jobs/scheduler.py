"""Background scheduler for recurring jobs (APScheduler)

Purpose
-------
Once a month, re-run the tier evaluator over last month's stored rows so the
outcomes reflect the tier defaults that were in force when the month closed
(managers often correct rates in the first days of a month).

How it works
------------
- `start_scheduler(tz)` creates a BackgroundScheduler in the provided timezone.
- One Cron job: day `RECALC_CRON_DAY` at `RECALC_CRON_HOUR`:00 →
  `monthly_recalc_job` (previous month, see `previous_month`).
- The FastAPI app starts it on startup when `ENABLE_SCHEDULER=true`
  (see `app/api/main.py`) and stops it on shutdown.

Notes
-----
- The job only rewrites outcome columns; it never moves team tiers.
- It's idempotent, so running it by hand through `/_jobs/run/recalc` is safe.
"""
from __future__ import annotations
from datetime import date
from typing import Optional
import logging
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.cron import CronTrigger
from fastapi import APIRouter, Depends, HTTPException

from app.core.auth import get_current_user, require_role
from app.core.config import settings
from app.core.db import SessionLocal
from app.core.models import User
from app.services.monthly_stats import recalculate_month

log = logging.getLogger(__name__)

SCHED: Optional[BackgroundScheduler] = None


def get_scheduler() -> Optional[BackgroundScheduler]:
    return SCHED


def previous_month(today: date | None = None) -> str:
    """YYYY-MM of the month before `today`."""
    today = today or date.today()
    if today.month == 1:
        return f"{today.year - 1}-12"
    return f"{today.year}-{today.month - 1:02d}"


# -----------------------------
# Job functions
# -----------------------------

def monthly_recalc_job(month: str | None = None) -> int:
    month = month or previous_month()
    log.info("[jobs] monthly_recalc_job start month=%s", month)
    db = SessionLocal()
    try:
        updated = recalculate_month(db, month)
    finally:
        db.close()
    log.info("[jobs] monthly_recalc_job done month=%s rows=%d", month, updated)
    return updated


# -----------------------------
# Scheduler lifecycle
# -----------------------------

def start_scheduler(tz: str = "UTC") -> BackgroundScheduler:
    """Create and start a background scheduler with the monthly recalc job.

    Args:
        tz: IANA timezone string (e.g., 'Asia/Kolkata').

    Returns:
        Running `BackgroundScheduler` instance (so the caller can shut it down).
    """
    global SCHED
    sched = BackgroundScheduler(timezone=tz)

    sched.add_job(
        monthly_recalc_job,
        CronTrigger(day=settings.recalc_cron_day, hour=settings.recalc_cron_hour, minute=0),
        id="monthly_recalc",
        replace_existing=True,
    )

    sched.start()
    SCHED = sched
    log.info("[jobs] scheduler started with timezone=%s", tz)
    return sched


def stop_scheduler() -> None:
    global SCHED
    if SCHED:
        SCHED.shutdown(wait=False)
        SCHED = None
        log.info("[jobs] scheduler stopped")


# ------------- DEV ROUTER (lives in this file) -------------
dev_router = APIRouter(prefix="/_jobs", tags=["_dev"])

@dev_router.get("")
def list_jobs():
    sched = get_scheduler()
    if not sched:
        raise HTTPException(status_code=503, detail="scheduler not running")
    out = []
    for j in sched.get_jobs():
        out.append({
            "id": j.id,
            "next_run": j.next_run_time.isoformat() if j.next_run_time else None,
            "trigger": str(j.trigger),
        })
    return out

@dev_router.post("/run/recalc")
def run_recalc_now(month: str | None = None, user: User = Depends(get_current_user)):
    require_role(user)
    updated = monthly_recalc_job(month)
    return {"ok": True, "updated": updated}
