# backend/spacebook/routes/v1/__init__.py
"""Versioned API routers, mounted under /api/v1 in main.py."""

from . import health, payments, prometheus, reservations, resources

__all__ = ["health", "payments", "prometheus", "reservations", "resources"]
