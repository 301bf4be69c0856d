# backend/spacebook/models/__init__.py
"""
SQLAlchemy models for the booking core.

Importing this package registers every table on ``Base.metadata``.
"""

from .payment import Payment, PaymentStatus
from .reservation import Reservation, ReservationStatus
from .resource import Branch, Resource

__all__ = [
    "Branch",
    "Payment",
    "PaymentStatus",
    "Reservation",
    "ReservationStatus",
    "Resource",
]
