# backend/spacebook/repositories/__init__.py
"""Data access layer for the booking core."""

from .base_repository import BaseRepository
from .factory import RepositoryFactory
from .payment_repository import PaymentRepository
from .reservation_repository import ReservationFilters, ReservationRepository
from .resource_repository import ResourceRepository

__all__ = [
    "BaseRepository",
    "PaymentRepository",
    "RepositoryFactory",
    "ReservationFilters",
    "ReservationRepository",
    "ResourceRepository",
]
