# clinic_booking/main.py
from __future__ import annotations

# Load .env early so settings and os.getenv see it
from dotenv import load_dotenv
load_dotenv()

import time

import sqlalchemy as sa
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy.ext.asyncio import AsyncSession

from clinic_booking.core.config import settings
from clinic_booking.core.errors import ErrorSeverity, error_aggregator, log_error, register_exception_handlers
from clinic_booking.core.logging import LoggingMiddleware, get_logger, setup_logging
from clinic_booking.db.base import init_db
from clinic_booking.db.session import get_session

setup_logging(
    debug=settings.is_development,
    max_log_length=settings.MAX_LOG_LENGTH,
    level=settings.LOG_LEVEL,
)
logger = get_logger(__name__)

# Routers
from clinic_booking.api.routes.appointments import router as appointments_router
from clinic_booking.api.routes.availability import router as availability_router
from clinic_booking.api.routes.booking_requests import router as booking_requests_router
from clinic_booking.api.routes.clinics import router as clinics_router
from clinic_booking.api.routes.patients import router as patients_router
from clinic_booking.api.routes.public import router as public_router

app = FastAPI(title="Clinic Booking", description="Clinic scheduling and public appointment requests")

app.middleware("http")(
    LoggingMiddleware(
        log_requests=settings.LOG_REQUESTS or settings.is_development,
        log_responses=settings.LOG_RESPONSES or settings.is_development,
        slow_threshold=settings.SLOW_REQUEST_THRESHOLD,
    )
)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_origins_list,
    allow_methods=["*"],
    allow_headers=["*"],
)
register_exception_handlers(app)


# -------- Health / readiness (public) --------
@app.get("/healthz", include_in_schema=False)
async def healthz():
    return {"ok": True}


@app.get("/readyz", include_in_schema=False)
async def readyz(db: AsyncSession = Depends(get_session)):
    await db.execute(sa.text("SELECT 1"))
    return {"db": "ok"}


@app.get("/metrics", include_in_schema=False)
async def metrics():
    """Error pattern summary for monitoring."""
    try:
        return {
            "status": "healthy",
            "errors": error_aggregator.get_error_summary(),
            "timestamp": time.time(),
        }
    except Exception as e:
        log_error(e, {"endpoint": "/metrics"}, ErrorSeverity.MEDIUM)
        return {"status": "error", "message": "Metrics collection failed"}


# -------- Include routers --------
app.include_router(public_router)
app.include_router(booking_requests_router)
app.include_router(availability_router)
app.include_router(appointments_router)
app.include_router(patients_router)
app.include_router(clinics_router)


# -------- Application startup/shutdown events --------
@app.on_event("startup")
async def startup_event():
    logger.info("application_startup", env=settings.APP_ENV)
    if settings.is_development:
        # Local runs create tables directly; deployed databases go through alembic
        await init_db()


@app.on_event("shutdown")
async def shutdown_event():
    error_aggregator.cleanup_old_patterns()
    logger.info("application_shutdown")
