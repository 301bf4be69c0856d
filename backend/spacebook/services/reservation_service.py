# backend/spacebook/services/reservation_service.py
"""
Reservation lifecycle: create, reschedule, confirm, cancel.

PENDING -> CONFIRMED -> CANCELLED, with PENDING -> CANCELLED allowed and
CANCELLED terminal. Every write runs inside ``resource_lock`` for the
reservation's resource and a single transaction, so the availability check
and the write it guards are atomic with respect to other writers of the
same resource. On PostgreSQL the ``reservations_no_overlap_per_resource``
exclusion constraint rejects anything that slips past the lock (another
deployment without a shared lock store, a manual insert); that rejection
is reported as TIME_SLOT_UNAVAILABLE like any other conflict.
"""

from datetime import date
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session

from ..core.booking_lock import resource_lock
from ..core.config import settings
from ..core.exceptions import RepositoryException
from ..domain.pricing import calculate_total, round_money
from ..models.reservation import Reservation, ReservationStatus
from ..repositories.factory import RepositoryFactory
from ..repositories.reservation_repository import ReservationFilters, ReservationRepository
from ..repositories.resource_repository import ResourceRepository
from ..schemas.reservation import ReservationCreate, ReservationUpdate
from .availability_service import AvailabilityService
from .base import BaseService
from .results import OutcomeKind, ServiceResult

logger = logging.getLogger(__name__)

OVERLAP_CONSTRAINT = "reservations_no_overlap_per_resource"

ReservationResult = ServiceResult[Reservation]


def _is_overlap_violation(exc: IntegrityError) -> bool:
    orig = getattr(exc, "orig", None)
    diag = getattr(orig, "diag", None)
    constraint_name = getattr(diag, "constraint_name", None) if diag is not None else None
    if constraint_name:
        return constraint_name == OVERLAP_CONSTRAINT
    return OVERLAP_CONSTRAINT in str(orig)


def _is_deadlock(exc: OperationalError) -> bool:
    return "deadlock detected" in str(getattr(exc, "orig", exc)).lower()


class ReservationService(BaseService):
    """Owns reservation writes; pricing and conflict checks are delegated."""

    def __init__(
        self,
        db: Session,
        availability_service: Optional[AvailabilityService] = None,
        reservation_repository: Optional[ReservationRepository] = None,
        resource_repository: Optional[ResourceRepository] = None,
    ):
        super().__init__(db)
        self.reservation_repository = (
            reservation_repository or RepositoryFactory.create_reservation_repository(db)
        )
        self.resource_repository = (
            resource_repository or RepositoryFactory.create_resource_repository(db)
        )
        self.availability_service = availability_service or AvailabilityService(
            db,
            reservation_repository=self.reservation_repository,
            resource_repository=self.resource_repository,
        )

    # Lifecycle operations

    @BaseService.measure_operation("create_reservation")
    def create(self, data: ReservationCreate) -> ReservationResult:
        """
        Claim an interval on a resource and price it.

        Order of checks: availability, then the resource itself (exists,
        active, belongs to ``branch_id``). The total is
        ``hourly_rate * hours`` rounded to cents and never changes under the
        default pricing policy.

        Returns:
            OK with the PENDING reservation, TIME_SLOT_UNAVAILABLE,
            INVALID_RESOURCE or INVALID_INTERVAL

        Raises:
            LockAcquisitionError: the resource lock could not be obtained
            RepositoryException: unexpected store failure (nothing written)
        """
        if data.end_time <= data.start_time:
            return ServiceResult.failure(
                OutcomeKind.INVALID_INTERVAL,
                start_time=data.start_time.isoformat(),
                end_time=data.end_time.isoformat(),
            )

        conflict_details = self._conflict_details(
            data.resource_id, data.reservation_date, data.start_time, data.end_time
        )
        try:
            with resource_lock(data.resource_id):
                with self.transaction():
                    result = self._claim_interval(data)
        except IntegrityError as exc:
            result = self._from_integrity_error(exc, conflict_details)
        except OperationalError as exc:
            if not _is_deadlock(exc):
                raise
            result = ServiceResult.failure(OutcomeKind.TIME_SLOT_UNAVAILABLE, **conflict_details)

        if result.ok and result.value is not None:
            self.log_operation(
                "create_reservation",
                reservation_id=result.value.id,
                resource_id=data.resource_id,
                total_amount=str(result.value.total_amount),
            )
        return result

    @BaseService.measure_operation("reschedule_reservation")
    def reschedule(self, reservation_id: str, data: ReservationUpdate) -> ReservationResult:
        """
        Partially update a reservation.

        Any supplied date/start/end is merged with the stored values and the
        merged interval is re-checked against every other non-cancelled
        reservation of the resource. ``notes`` and ``deposit_required_pct``
        change only when supplied.

        Returns:
            OK with the updated reservation, NOT_FOUND, INVALID_TRANSITION
            (cancelled), INVALID_INTERVAL (merged end <= start) or
            TIME_SLOT_UNAVAILABLE
        """

        def apply(reservation: Reservation) -> ReservationResult:
            if reservation.is_cancelled:
                return self._invalid_transition(reservation, "reschedule")
            updates = self._detail_updates(data)
            if data.moves_interval:
                rejection, interval_updates = self._check_move(reservation, data)
                if rejection is not None:
                    return rejection
                updates.update(interval_updates)
            self.reservation_repository.update(reservation, **updates)
            return ServiceResult.success(reservation)

        try:
            return self._with_locked_reservation(reservation_id, apply)
        except IntegrityError as exc:
            return self._from_integrity_error(exc, {"reservation_id": reservation_id})
        except OperationalError as exc:
            if not _is_deadlock(exc):
                raise
            return ServiceResult.failure(
                OutcomeKind.TIME_SLOT_UNAVAILABLE, reservation_id=reservation_id
            )

    @BaseService.measure_operation("confirm_reservation")
    def confirm(self, reservation_id: str) -> ReservationResult:
        """PENDING or CONFIRMED -> CONFIRMED. A cancelled reservation stays cancelled."""

        def apply(reservation: Reservation) -> ReservationResult:
            if reservation.is_cancelled:
                return self._invalid_transition(reservation, "confirm")
            reservation.confirm()
            self.db.flush()
            return ServiceResult.success(reservation)

        return self._with_locked_reservation(reservation_id, apply)

    @BaseService.measure_operation("cancel_reservation")
    def cancel(self, reservation_id: str) -> ReservationResult:
        """
        Move to CANCELLED (idempotent).

        The interval is free for new reservations as soon as this commits.
        """

        def apply(reservation: Reservation) -> ReservationResult:
            reservation.cancel()
            self.db.flush()
            return ServiceResult.success(reservation)

        return self._with_locked_reservation(reservation_id, apply)

    # Reads

    @BaseService.measure_operation("get_reservation")
    def get_with_payments(self, reservation_id: str) -> ReservationResult:
        reservation = self.reservation_repository.get_by_id(reservation_id)
        if reservation is None:
            return ServiceResult.failure(OutcomeKind.NOT_FOUND, reservation_id=reservation_id)
        return ServiceResult.success(reservation)

    @BaseService.measure_operation("list_reservations")
    def list_reservations(self, filters: Optional[ReservationFilters] = None) -> List[Reservation]:
        return self.reservation_repository.list_filtered(filters or ReservationFilters())

    @BaseService.measure_operation("reservations_by_day")
    def reservations_by_day(
        self, on_date: date, branch_id: Optional[str] = None
    ) -> List[Reservation]:
        return self.reservation_repository.get_by_day(on_date, branch_id=branch_id)

    # Internals

    def _with_locked_reservation(
        self,
        reservation_id: str,
        action: Callable[[Reservation], ReservationResult],
    ) -> ReservationResult:
        """
        Run ``action`` on a freshly loaded reservation while holding its
        resource's lock, inside one transaction.
        """
        with self.transaction():
            current = self.reservation_repository.get_by_id(
                reservation_id, load_relationships=False
            )
        if current is None:
            return ServiceResult.failure(OutcomeKind.NOT_FOUND, reservation_id=reservation_id)

        with resource_lock(current.resource_id):
            with self.transaction():
                # Drop state read before the lock was held.
                self.db.expire_all()
                reservation = self.reservation_repository.get_for_update(reservation_id)
                if reservation is None:
                    return ServiceResult.failure(
                        OutcomeKind.NOT_FOUND, reservation_id=reservation_id
                    )
                return action(reservation)

    def _claim_interval(self, data: ReservationCreate) -> ReservationResult:
        resource = self.resource_repository.get_for_update(data.resource_id)

        if not self.availability_service.is_available(
            data.resource_id, data.reservation_date, data.start_time, data.end_time
        ):
            details = self._conflict_details(
                data.resource_id, data.reservation_date, data.start_time, data.end_time
            )
            self.logger.warning("Reservation conflict on create", extra=details)
            return ServiceResult.failure(OutcomeKind.TIME_SLOT_UNAVAILABLE, **details)

        if resource is None:
            return self._invalid_resource(data.resource_id, "not_found")
        if not resource.active:
            return self._invalid_resource(data.resource_id, "inactive")
        if resource.branch_id != data.branch_id:
            return self._invalid_resource(data.resource_id, "branch_mismatch")

        rate = round_money(resource.hourly_rate)
        reservation = self.reservation_repository.create(
            resource_id=resource.id,
            branch_id=data.branch_id,
            customer_id=data.customer_id,
            reservation_date=data.reservation_date,
            start_time=data.start_time,
            end_time=data.end_time,
            status=ReservationStatus.PENDING.value,
            hourly_rate_snapshot=rate,
            total_amount=round_money(calculate_total(rate, data.start_time, data.end_time)),
            deposit_required_pct=data.deposit_required_pct or 0,
            notes=data.notes,
        )
        return ServiceResult.success(reservation)

    def _check_move(
        self, reservation: Reservation, data: ReservationUpdate
    ) -> Tuple[Optional[ReservationResult], Dict[str, Any]]:
        """
        Validate the merged interval.

        Returns:
            (rejection, {}) when the move is refused, otherwise
            (None, column updates) including the total when repricing
        """
        new_date = (
            data.reservation_date
            if data.reservation_date is not None
            else reservation.reservation_date
        )
        new_start = data.start_time if data.start_time is not None else reservation.start_time
        new_end = data.end_time if data.end_time is not None else reservation.end_time

        if new_end <= new_start:
            rejection = ServiceResult.failure(
                OutcomeKind.INVALID_INTERVAL,
                reservation_id=reservation.id,
                start_time=new_start.isoformat(),
                end_time=new_end.isoformat(),
            )
            return rejection, {}

        self.resource_repository.get_for_update(reservation.resource_id)
        if not self.availability_service.is_available(
            reservation.resource_id,
            new_date,
            new_start,
            new_end,
            exclude_reservation_id=reservation.id,
        ):
            details = self._conflict_details(reservation.resource_id, new_date, new_start, new_end)
            details["reservation_id"] = reservation.id
            self.logger.warning("Reservation conflict on reschedule", extra=details)
            return ServiceResult.failure(OutcomeKind.TIME_SLOT_UNAVAILABLE, **details), {}

        updates: Dict[str, Any] = {
            "reservation_date": new_date,
            "start_time": new_start,
            "end_time": new_end,
        }
        if settings.reschedule_pricing == "recompute":
            updates["total_amount"] = round_money(
                calculate_total(reservation.hourly_rate_snapshot, new_start, new_end)
            )
        return None, updates

    @staticmethod
    def _detail_updates(data: ReservationUpdate) -> Dict[str, Any]:
        updates: Dict[str, Any] = {}
        if data.notes is not None:
            updates["notes"] = data.notes.strip()
        if data.deposit_required_pct is not None:
            updates["deposit_required_pct"] = data.deposit_required_pct
        return updates

    def _from_integrity_error(
        self, exc: IntegrityError, details: Dict[str, Any]
    ) -> ReservationResult:
        if not _is_overlap_violation(exc):
            raise RepositoryException(f"Integrity constraint violated: {exc}") from exc
        self.logger.warning("Overlap rejected by exclusion constraint", extra=details)
        return ServiceResult.failure(OutcomeKind.TIME_SLOT_UNAVAILABLE, **details)

    def _invalid_transition(self, reservation: Reservation, action: str) -> ReservationResult:
        return ServiceResult.failure(
            OutcomeKind.INVALID_TRANSITION,
            reservation_id=reservation.id,
            status=reservation.status,
            action=action,
        )

    @staticmethod
    def _invalid_resource(resource_id: str, reason: str) -> ReservationResult:
        return ServiceResult.failure(
            OutcomeKind.INVALID_RESOURCE, resource_id=resource_id, reason=reason
        )

    @staticmethod
    def _conflict_details(resource_id: str, on_date: date, start: Any, end: Any) -> Dict[str, Any]:
        return {
            "resource_id": resource_id,
            "date": on_date.isoformat(),
            "start_time": start.strftime("%H:%M"),
            "end_time": end.strftime("%H:%M"),
        }
