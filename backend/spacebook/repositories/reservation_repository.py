# backend/spacebook/repositories/reservation_repository.py
"""
Reservation Repository.

Conflict lookups only ever consider non-cancelled reservations: cancelling
a reservation frees its interval immediately.
"""

from dataclasses import dataclass
from datetime import date
import logging
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Query, Session, selectinload

from ..core.exceptions import RepositoryException
from ..models.reservation import Reservation, ReservationStatus
from .base_repository import BaseRepository

logger = logging.getLogger(__name__)


@dataclass
class ReservationFilters:
    """Optional equality filters for listing reservations."""

    branch_id: Optional[str] = None
    resource_id: Optional[str] = None
    customer_id: Optional[str] = None
    status: Optional[str] = None
    reservation_date: Optional[date] = None


class ReservationRepository(BaseRepository[Reservation]):
    def __init__(self, db: Session):
        super().__init__(db, Reservation)

    def _apply_eager_loading(self, query: Query) -> Query:
        return query.options(selectinload(Reservation.payments))

    def create(self, **kwargs: Any) -> Reservation:
        """Create a reservation, exposing integrity errors for conflict handling."""
        try:
            return super().create(**kwargs)
        except RepositoryException as exc:
            if isinstance(exc.__cause__, IntegrityError):
                raise exc.__cause__
            raise

    def update(self, entity: Reservation, **kwargs: Any) -> Reservation:
        try:
            return super().update(entity, **kwargs)
        except RepositoryException as exc:
            if isinstance(exc.__cause__, IntegrityError):
                raise exc.__cause__
            raise

    def get_for_update(self, reservation_id: str) -> Optional[Reservation]:
        """Load a reservation, holding its row lock until commit on PostgreSQL."""
        try:
            query = self.db.query(Reservation).filter(Reservation.id == reservation_id)
            if self.dialect_name == "postgresql":
                query = query.with_for_update()
            return query.first()
        except SQLAlchemyError as e:
            self.logger.error(f"Error locking reservation {reservation_id}: {str(e)}")
            raise RepositoryException(f"Failed to lock reservation: {str(e)}") from e

    # Conflict Queries

    def get_active_for_day(
        self,
        resource_id: str,
        on_date: date,
        exclude_reservation_id: Optional[str] = None,
    ) -> List[Reservation]:
        """
        Non-cancelled reservations of a resource on one date, by start time.

        Args:
            resource_id: The resource to check
            on_date: The reservation date
            exclude_reservation_id: Reservation to leave out (a reschedule must
                not conflict with itself)
        """
        try:
            query = self.db.query(Reservation).filter(
                Reservation.resource_id == resource_id,
                Reservation.reservation_date == on_date,
                Reservation.status != ReservationStatus.CANCELLED.value,
            )
            if exclude_reservation_id:
                query = query.filter(Reservation.id != exclude_reservation_id)
            return query.order_by(Reservation.start_time.asc()).all()
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting reservations for conflict check: {str(e)}")
            raise RepositoryException(f"Failed to get reservations: {str(e)}") from e

    def get_active_for_resources_on_date(
        self, resource_ids: Iterable[str], on_date: date
    ) -> Dict[str, List[Reservation]]:
        """Batch form of ``get_active_for_day`` keyed by resource id (one query)."""
        ids = list(resource_ids)
        grouped: Dict[str, List[Reservation]] = {resource_id: [] for resource_id in ids}
        if not ids:
            return grouped
        try:
            rows = (
                self.db.query(Reservation)
                .filter(
                    Reservation.resource_id.in_(ids),
                    Reservation.reservation_date == on_date,
                    Reservation.status != ReservationStatus.CANCELLED.value,
                )
                .order_by(Reservation.start_time.asc())
                .all()
            )
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting reservations for {len(ids)} resources: {str(e)}")
            raise RepositoryException(f"Failed to get reservations: {str(e)}") from e
        for row in rows:
            grouped[row.resource_id].append(row)
        return grouped

    # Listing Queries

    def list_filtered(self, filters: ReservationFilters) -> List[Reservation]:
        """Reservations matching ``filters``, newest date first then latest start first."""
        try:
            query = self.db.query(Reservation)
            if filters.branch_id:
                query = query.filter(Reservation.branch_id == filters.branch_id)
            if filters.resource_id:
                query = query.filter(Reservation.resource_id == filters.resource_id)
            if filters.customer_id:
                query = query.filter(Reservation.customer_id == filters.customer_id)
            if filters.status:
                query = query.filter(Reservation.status == filters.status)
            if filters.reservation_date:
                query = query.filter(Reservation.reservation_date == filters.reservation_date)
            return query.order_by(
                Reservation.reservation_date.desc(), Reservation.start_time.desc()
            ).all()
        except SQLAlchemyError as e:
            self.logger.error(f"Error listing reservations: {str(e)}")
            raise RepositoryException(f"Failed to list reservations: {str(e)}") from e

    def get_by_day(self, on_date: date, branch_id: Optional[str] = None) -> List[Reservation]:
        try:
            query = self.db.query(Reservation).filter(Reservation.reservation_date == on_date)
            if branch_id:
                query = query.filter(Reservation.branch_id == branch_id)
            return query.order_by(Reservation.start_time.asc()).all()
        except SQLAlchemyError as e:
            self.logger.error(f"Error getting reservations for {on_date}: {str(e)}")
            raise RepositoryException(f"Failed to get reservations: {str(e)}") from e
