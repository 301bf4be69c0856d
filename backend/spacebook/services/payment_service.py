# backend/spacebook/services/payment_service.py
"""
Payment reconciliation ledger.

Payments are recorded PENDING and later marked PAID. A PAID payment is
never deleted or reverted. Every ledger write for a reservation runs under
``ledger_lock(reservation_id)`` in one transaction, so a delete cannot
interleave with a concurrent mark-paid and the overpayment check (when the
``reject`` policy is on) sees every earlier write.
"""

from decimal import Decimal
import logging
from typing import Callable, List, Optional

from sqlalchemy.orm import Session

from ..core.booking_lock import ledger_lock
from ..core.config import settings
from ..domain.pricing import round_money
from ..models.payment import Payment, PaymentStatus
from ..repositories.factory import RepositoryFactory
from ..repositories.payment_repository import PaymentRepository
from ..repositories.reservation_repository import ReservationRepository
from ..schemas.payment import PaymentCreate
from .base import BaseService
from .results import OutcomeKind, PaymentSummary, ServiceResult

logger = logging.getLogger(__name__)

PaymentResult = ServiceResult[Payment]


class PaymentService(BaseService):
    def __init__(
        self,
        db: Session,
        payment_repository: Optional[PaymentRepository] = None,
        reservation_repository: Optional[ReservationRepository] = None,
    ):
        super().__init__(db)
        self.payment_repository = (
            payment_repository or RepositoryFactory.create_payment_repository(db)
        )
        self.reservation_repository = (
            reservation_repository or RepositoryFactory.create_reservation_repository(db)
        )

    @property
    def rejects_overpayment(self) -> bool:
        return settings.overpayment_policy == "reject"

    @BaseService.measure_operation("record_payment")
    def record_payment(self, data: PaymentCreate) -> PaymentResult:
        """
        Record a PENDING payment against a reservation.

        Under the ``reject`` overpayment policy the payment is refused when
        paid + pending + amount would exceed the reservation total.

        Returns:
            OK with the new payment, NOT_FOUND or OVERPAYMENT_REJECTED
        """
        amount = round_money(data.amount)

        def apply() -> PaymentResult:
            reservation = self.reservation_repository.get_for_update(data.reservation_id)
            if reservation is None:
                return ServiceResult.failure(
                    OutcomeKind.NOT_FOUND, reservation_id=data.reservation_id
                )
            if self.rejects_overpayment:
                totals = self.payment_repository.totals_by_status(reservation.id)
                committed = totals[PaymentStatus.PAID.value] + totals[PaymentStatus.PENDING.value]
                if committed + amount > round_money(reservation.total_amount):
                    return self._overpayment(reservation.id, reservation.total_amount, committed, amount)

            payment = self.payment_repository.create(
                reservation_id=reservation.id,
                amount=amount,
                method=data.method,
                status=PaymentStatus.PENDING.value,
                purpose=data.purpose,
                external_ref=data.external_ref,
            )
            return ServiceResult.success(payment)

        result = self._with_ledger_lock(data.reservation_id, apply)
        if result.ok and result.value is not None:
            self.log_operation(
                "record_payment",
                payment_id=result.value.id,
                reservation_id=data.reservation_id,
                amount=str(amount),
            )
        return result

    @BaseService.measure_operation("mark_payment_paid")
    def mark_paid(self, payment_id: str, external_ref: Optional[str] = None) -> PaymentResult:
        """
        PENDING or PAID -> PAID, stamping ``paid_at`` with the current time.

        ``external_ref`` replaces the stored reference only when supplied.
        Re-marking a PAID payment just re-stamps ``paid_at``.
        """
        current = self._lookup(payment_id)
        if current is None:
            return ServiceResult.failure(OutcomeKind.NOT_FOUND, payment_id=payment_id)

        def apply() -> PaymentResult:
            payment = self.payment_repository.get_by_id(payment_id)
            if payment is None:
                return ServiceResult.failure(OutcomeKind.NOT_FOUND, payment_id=payment_id)
            if self.rejects_overpayment and not payment.is_paid:
                reservation = self.reservation_repository.get_by_id(
                    payment.reservation_id, load_relationships=False
                )
                paid = self.payment_repository.totals_by_status(payment.reservation_id)[
                    PaymentStatus.PAID.value
                ]
                if reservation is not None and paid + payment.amount > round_money(
                    reservation.total_amount
                ):
                    return self._overpayment(
                        reservation.id, reservation.total_amount, paid, payment.amount
                    )
            payment.mark_paid(external_ref)
            self.db.flush()
            return ServiceResult.success(payment)

        return self._with_ledger_lock(current.reservation_id, apply)

    @BaseService.measure_operation("delete_payment")
    def delete_payment(self, payment_id: str) -> ServiceResult[None]:
        """
        Delete a PENDING payment.

        Returns:
            DELETED, CANNOT_DELETE_PAID (record left untouched) or NOT_FOUND
        """
        current = self._lookup(payment_id)
        if current is None:
            return ServiceResult.failure(OutcomeKind.NOT_FOUND, payment_id=payment_id)

        def apply() -> ServiceResult[None]:
            payment = self.payment_repository.get_by_id(payment_id)
            if payment is None:
                return ServiceResult.failure(OutcomeKind.NOT_FOUND, payment_id=payment_id)
            if payment.is_paid:
                self.logger.info(f"Refusing to delete paid payment {payment_id}")
                return ServiceResult.failure(OutcomeKind.CANNOT_DELETE_PAID, payment_id=payment_id)
            self.payment_repository.delete(payment)
            return ServiceResult(OutcomeKind.DELETED)

        return self._with_ledger_lock(current.reservation_id, apply)

    @BaseService.measure_operation("summarize_payments")
    def summarize(self, reservation_id: str) -> ServiceResult[PaymentSummary]:
        """
        ``{total, paid, remaining}`` for a reservation, all rounded to cents.

        ``paid`` counts PAID payments only; ``remaining`` is floored at zero.
        """
        reservation = self.reservation_repository.get_by_id(
            reservation_id, load_relationships=False
        )
        if reservation is None:
            return ServiceResult.failure(OutcomeKind.NOT_FOUND, reservation_id=reservation_id)

        total = round_money(reservation.total_amount)
        paid = round_money(
            self.payment_repository.totals_by_status(reservation_id)[PaymentStatus.PAID.value]
        )
        remaining = max(Decimal("0.00"), total - paid)
        return ServiceResult.success(PaymentSummary(total=total, paid=paid, remaining=round_money(remaining)))

    @BaseService.measure_operation("get_payment")
    def get_payment(self, payment_id: str) -> PaymentResult:
        payment = self.payment_repository.get_by_id(payment_id)
        if payment is None:
            return ServiceResult.failure(OutcomeKind.NOT_FOUND, payment_id=payment_id)
        return ServiceResult.success(payment)

    @BaseService.measure_operation("list_payments")
    def list_payments(self, reservation_id: str) -> ServiceResult[List[Payment]]:
        """Payments of a reservation, oldest first."""
        reservation = self.reservation_repository.get_by_id(
            reservation_id, load_relationships=False
        )
        if reservation is None:
            return ServiceResult.failure(OutcomeKind.NOT_FOUND, reservation_id=reservation_id)
        return ServiceResult.success(self.payment_repository.list_for_reservation(reservation_id))

    # Internals

    def _lookup(self, payment_id: str) -> Optional[Payment]:
        with self.transaction():
            return self.payment_repository.get_by_id(payment_id)

    def _with_ledger_lock(self, reservation_id: str, action: Callable[[], ServiceResult]) -> ServiceResult:
        with ledger_lock(reservation_id):
            with self.transaction():
                # Drop state read before the lock was held.
                self.db.expire_all()
                return action()

    def _overpayment(
        self, reservation_id: str, total: Decimal, counted: Decimal, amount: Decimal
    ) -> ServiceResult:
        details = {
            "reservation_id": reservation_id,
            "total": str(round_money(total)),
            "counted": str(round_money(counted)),
            "amount": str(round_money(amount)),
        }
        self.logger.warning("Payment would exceed reservation total", extra=details)
        return ServiceResult.failure(OutcomeKind.OVERPAYMENT_REJECTED, **details)
