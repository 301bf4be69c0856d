# backend/spacebook/main.py
"""
FastAPI application for the Spacebook booking core.

Run locally with:
    uvicorn spacebook.main:app --reload --app-dir backend
"""

from contextlib import asynccontextmanager
import logging
from typing import AsyncGenerator

from fastapi import APIRouter, FastAPI

from .core.config import settings
from .database import init_db
from .errors import register_error_handlers
from .routes.v1 import health, payments, prometheus, reservations, resources

# Configure logging
logging.basicConfig(
    level=settings.log_level, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"


@asynccontextmanager
async def app_lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application startup and shutdown."""
    logger.info(
        f"Starting Spacebook API {API_VERSION} (environment={settings.environment}, "
        f"lock_backend={settings.booking_lock_backend})"
    )
    if settings.is_sqlite:
        # PostgreSQL schemas come from Alembic (exclusion constraint included).
        init_db()
        logger.info("SQLite schema ensured from model metadata")
    yield
    logger.info("Shutting down Spacebook API")


app = FastAPI(
    title="Spacebook Booking API",
    description="Reservations, availability and payment reconciliation for bookable spaces",
    version=API_VERSION,
    lifespan=app_lifespan,
)

register_error_handlers(app)

# Create API v1 router
api_v1 = APIRouter(prefix="/api/v1")

# Mount v1 routes
api_v1.include_router(reservations.router, prefix="/reservations")
api_v1.include_router(payments.router, prefix="/payments")
api_v1.include_router(resources.router, prefix="/resources")

app.include_router(api_v1)
app.include_router(health.router)
app.include_router(prometheus.router)
