# backend/spacebook/repositories/factory.py
"""
Repository Factory.

Centralizes repository creation so services receive consistently
initialized repositories bound to their session.
"""

from typing import TYPE_CHECKING

from sqlalchemy.orm import Session

# Avoid circular imports
if TYPE_CHECKING:
    from .payment_repository import PaymentRepository
    from .reservation_repository import ReservationRepository
    from .resource_repository import ResourceRepository


class RepositoryFactory:
    """Factory class for creating repository instances."""

    @staticmethod
    def create_resource_repository(db: Session) -> "ResourceRepository":
        """Create repository for directory (resource/branch) lookups."""
        from .resource_repository import ResourceRepository

        return ResourceRepository(db)

    @staticmethod
    def create_reservation_repository(db: Session) -> "ReservationRepository":
        """Create repository for reservation queries and conflict lookups."""
        from .reservation_repository import ReservationRepository

        return ReservationRepository(db)

    @staticmethod
    def create_payment_repository(db: Session) -> "PaymentRepository":
        """Create repository for payment ledger queries."""
        from .payment_repository import PaymentRepository

        return PaymentRepository(db)
