# backend/spacebook/api/dependencies/services.py
"""
Service layer dependencies for dependency injection.

Each request gets services bound to its own session; tests override
``get_db`` to point them at a throwaway database.
"""

from fastapi import Depends
from sqlalchemy.orm import Session

from ...services.availability_service import AvailabilityService
from ...services.payment_service import PaymentService
from ...services.reservation_service import ReservationService
from .database import get_db


def get_availability_service(db: Session = Depends(get_db)) -> AvailabilityService:
    return AvailabilityService(db)


def get_reservation_service(db: Session = Depends(get_db)) -> ReservationService:
    """
    Get reservation service instance.

    Args:
        db: Database session

    Returns:
        ReservationService sharing its repositories with its availability checker
    """
    return ReservationService(db)


def get_payment_service(db: Session = Depends(get_db)) -> PaymentService:
    return PaymentService(db)
