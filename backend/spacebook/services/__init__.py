# backend/spacebook/services/__init__.py
"""Service layer: availability checks, reservation lifecycle, payment ledger."""

from .availability_service import AvailabilityService
from .base import BaseService
from .payment_service import PaymentService
from .reservation_service import ReservationService
from .results import (
    OutcomeKind,
    PaymentSummary,
    ResourceAvailability,
    SearchFilters,
    ServiceResult,
)

__all__ = [
    "AvailabilityService",
    "BaseService",
    "OutcomeKind",
    "PaymentService",
    "PaymentSummary",
    "ReservationService",
    "ResourceAvailability",
    "SearchFilters",
    "ServiceResult",
]
