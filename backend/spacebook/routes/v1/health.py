# backend/spacebook/routes/v1/health.py
"""
Health check endpoint for monitoring and load balancer probes.
"""

from datetime import datetime, timezone

from fastapi import APIRouter

from ...core.config import settings

router = APIRouter(tags=["health"])


@router.get("/health")
def health_check() -> dict:
    """Liveness probe; does not touch the database."""
    return {
        "status": "healthy",
        "service": "spacebook",
        "environment": settings.environment,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
