import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.core.config import settings
from app.jobs.scheduler import dev_router, start_scheduler, stop_scheduler
from app.routers import health, monthly, tier_defaults

logging.basicConfig(
    level=getattr(logging, (settings.log_level or "INFO").upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
log = logging.getLogger("tierhub")

app = FastAPI(
    title="tierHub API",
    version="0.1.0",
    docs_url="/docs",
    redoc_url="/redoc",
)

# --- CORS (read from env; defaults to * for dev) ---
origins = [o.strip() for o in (settings.cors_origins or "").split(",") if o.strip()]
allow_origins = ["*"] if not origins or origins == ["*"] else origins

app.add_middleware(
    CORSMiddleware,
    allow_origins=allow_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- Routers ---
app.include_router(health.router, prefix="/health", tags=["health"])
app.include_router(monthly.router)
app.include_router(tier_defaults.router)
app.include_router(dev_router)


@app.get("/")
def root():
    return {
        "name": "tierHub",
        "version": "0.1.0",
        "docs": "/docs",
        "health": "/health",
    }


# --- Scheduler ---
@app.on_event("startup")
def _on_startup():
    if not settings.enable_scheduler:
        return
    try:
        start_scheduler(settings.timezone)
    except Exception:
        # In dev, don't crash the app if scheduler fails to start
        log.exception("[tierhub] Scheduler start failed")


@app.on_event("shutdown")
def _on_shutdown():
    stop_scheduler()
