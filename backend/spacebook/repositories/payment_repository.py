# backend/spacebook/repositories/payment_repository.py
"""Payment Repository: ledger rows and per-status totals for a reservation."""

from decimal import Decimal
import logging
from typing import Dict, List

from sqlalchemy import func
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..core.exceptions import RepositoryException
from ..models.payment import Payment, PaymentStatus
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


class PaymentRepository(BaseRepository[Payment]):
    def __init__(self, db: Session):
        super().__init__(db, Payment)

    def list_for_reservation(self, reservation_id: str) -> List[Payment]:
        """Payments of a reservation, oldest first."""
        try:
            return (
                self.db.query(Payment)
                .filter(Payment.reservation_id == reservation_id)
                .order_by(Payment.created_at.asc(), Payment.id.asc())
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing payments for {reservation_id}: {str(e)}")
            raise RepositoryException(f"Failed to list payments: {str(e)}") from e

    def totals_by_status(self, reservation_id: str) -> Dict[str, Decimal]:
        """
        Sum of payment amounts per status.

        Returns:
            Mapping with a ``Decimal`` for every ``PaymentStatus`` (zero when
            there are no payments in that status)
        """
        try:
            rows = (
                self.db.query(Payment.status, func.coalesce(func.sum(Payment.amount), 0))
                .filter(Payment.reservation_id == reservation_id)
                .group_by(Payment.status)
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error summing payments for {reservation_id}: {str(e)}")
            raise RepositoryException(f"Failed to sum payments: {str(e)}") from e

        totals = {status.value: Decimal("0") for status in PaymentStatus}
        for status, amount in rows:
            totals[status] = Decimal(str(amount))
        return totals
