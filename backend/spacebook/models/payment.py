# backend/spacebook/models/payment.py
"""Payments recorded against a reservation's committed total."""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Numeric, String
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..database import Base


class PaymentStatus(str, Enum):
    PENDING = "PENDING"
    PAID = "PAID"


class Payment(Base):
    """
    One installment towards a reservation.

    A PAID payment is never deleted or reverted; only ``paid_at`` and
    ``external_ref`` may be touched again, when it is re-marked paid.
    """

    __tablename__ = "payments"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))
    reservation_id = Column(
        String(26),
        ForeignKey("reservations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    amount = Column(Numeric(10, 2), nullable=False)
    method = Column(String(50), nullable=False)
    status = Column(String(20), nullable=False, default=PaymentStatus.PENDING.value, index=True)
    purpose = Column(String(50), nullable=True)
    external_ref = Column(String(255), nullable=True)
    paid_at = Column(DateTime(timezone=True), nullable=True)

    created_at = Column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), server_default=func.now()
    )
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    reservation = relationship("Reservation", back_populates="payments")

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_payments_amount_positive"),
        CheckConstraint("status IN ('PENDING', 'PAID')", name="ck_payments_status"),
    )

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        if not self.status:
            self.status = PaymentStatus.PENDING.value

    def __repr__(self) -> str:
        return f"<Payment {self.id}: reservation={self.reservation_id}, amount={self.amount}, status={self.status}>"

    @property
    def is_paid(self) -> bool:
        return self.status == PaymentStatus.PAID.value

    def mark_paid(self, external_ref: Optional[str] = None) -> None:
        """Stamp as PAID now; ``external_ref`` replaces the stored one only when given."""
        self.status = PaymentStatus.PAID.value
        self.paid_at = datetime.now(timezone.utc)
        if external_ref:
            self.external_ref = external_ref
