# backend/spacebook/models/reservation.py
"""
Reservation model.

A reservation claims one resource for a same-day ``[start_time, end_time)``
interval. Non-cancelled reservations of a resource never overlap; the
service layer enforces that under a per-resource lock, and on PostgreSQL
the ``reservations_no_overlap_per_resource`` exclusion constraint (created
by migration 001) backs it at commit time.
"""

from datetime import datetime, timezone
from enum import Enum
import logging
from typing import Any

from sqlalchemy import (
    CheckConstraint,
    Column,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
    Time,
)
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
import ulid

from ..database import Base

logger = logging.getLogger(__name__)


class ReservationStatus(str, Enum):
    """Reservation lifecycle statuses. CANCELLED is terminal."""

    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    CANCELLED = "CANCELLED"


class Reservation(Base):
    __tablename__ = "reservations"

    id = Column(String(26), primary_key=True, index=True, default=lambda: str(ulid.ULID()))

    resource_id = Column(String(26), ForeignKey("resources.id"), nullable=False)
    branch_id = Column(String(26), ForeignKey("branches.id"), nullable=False, index=True)
    # Customers live in the user directory; only the id is stored.
    customer_id = Column(String(26), nullable=False, index=True)

    reservation_date = Column(Date, nullable=False)
    start_time = Column(Time, nullable=False)
    end_time = Column(Time, nullable=False)

    status = Column(String(20), nullable=False, default=ReservationStatus.PENDING.value, index=True)

    # Rate the total was computed from; never the live resource rate.
    hourly_rate_snapshot = Column(Numeric(10, 2), nullable=False)
    total_amount = Column(Numeric(10, 2), nullable=False)
    deposit_required_pct = Column(Numeric(5, 2), nullable=False, default=0)
    notes = Column(Text, nullable=True)

    created_at = Column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), server_default=func.now()
    )
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
    confirmed_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)

    resource = relationship("Resource")
    payments = relationship(
        "Payment",
        back_populates="reservation",
        cascade="all, delete-orphan",
        order_by="[Payment.created_at, Payment.id]",
    )

    __table_args__ = (
        CheckConstraint(
            "status IN ('PENDING', 'CONFIRMED', 'CANCELLED')",
            name="ck_reservations_status",
        ),
        CheckConstraint("end_time > start_time", name="ck_reservations_time_order"),
        CheckConstraint("total_amount >= 0", name="ck_reservations_total_non_negative"),
        CheckConstraint(
            "deposit_required_pct >= 0 AND deposit_required_pct <= 100",
            name="ck_reservations_deposit_pct_range",
        ),
    )

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(**kwargs)
        if not self.status:
            self.status = ReservationStatus.PENDING.value
        if self.deposit_required_pct is None:
            self.deposit_required_pct = 0

    def __repr__(self) -> str:
        return (
            f"<Reservation {self.id}: resource={self.resource_id}, date={self.reservation_date}, "
            f"time={self.start_time}-{self.end_time}, status={self.status}>"
        )

    @property
    def is_cancelled(self) -> bool:
        return self.status == ReservationStatus.CANCELLED.value

    def confirm(self) -> None:
        """Move to CONFIRMED; re-confirming keeps the first confirmation time."""
        if self.status != ReservationStatus.CONFIRMED.value:
            self.confirmed_at = datetime.now(timezone.utc)
        self.status = ReservationStatus.CONFIRMED.value
        logger.info(f"Reservation {self.id} confirmed")

    def cancel(self) -> None:
        """Move to CANCELLED. Already-cancelled reservations keep their timestamp."""
        if self.is_cancelled:
            return
        self.status = ReservationStatus.CANCELLED.value
        self.cancelled_at = datetime.now(timezone.utc)
        logger.info(f"Reservation {self.id} cancelled")


# Overlap lookups scan one resource/day at a time and skip cancelled rows.
Index(
    "ix_reservations_resource_date_active",
    Reservation.resource_id,
    Reservation.reservation_date,
    Reservation.start_time,
    postgresql_where=(Reservation.status != ReservationStatus.CANCELLED.value),
)
