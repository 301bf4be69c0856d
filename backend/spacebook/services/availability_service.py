# backend/spacebook/services/availability_service.py
"""
Availability checks for the booking core.

A resource is free for ``[start, end)`` on a date when no non-cancelled
reservation of that resource on that date overlaps the interval. Overlap is
decided by ``intervals_overlap`` so touching intervals never conflict.
"""

from datetime import date, time
import logging
from typing import List, Optional

from sqlalchemy.orm import Session

from ..domain.intervals import intervals_overlap
from ..models.reservation import Reservation
from ..repositories.factory import RepositoryFactory
from ..repositories.reservation_repository import ReservationRepository
from ..repositories.resource_repository import ResourceRepository
from .base import BaseService
from .results import ResourceAvailability, SearchFilters

logger = logging.getLogger(__name__)


class AvailabilityService(BaseService):
    """Read-only conflict detection and resource search."""

    def __init__(
        self,
        db: Session,
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

    @staticmethod
    def _overlapping(existing: List[Reservation], start: time, end: time) -> List[Reservation]:
        return [r for r in existing if intervals_overlap(start, end, r.start_time, r.end_time)]

    @BaseService.measure_operation("find_conflicts")
    def find_conflicts(
        self,
        resource_id: str,
        on_date: date,
        start: time,
        end: time,
        exclude_reservation_id: Optional[str] = None,
    ) -> List[Reservation]:
        """
        Non-cancelled reservations that overlap ``[start, end)``.

        Args:
            resource_id: Resource being claimed
            on_date: Reservation date
            start: Interval start
            end: Interval end
            exclude_reservation_id: Reservation that must not conflict with
                itself (reschedule)

        Returns:
            Conflicting reservations ordered by start time
        """
        existing = self.reservation_repository.get_active_for_day(
            resource_id, on_date, exclude_reservation_id=exclude_reservation_id
        )
        conflicts = self._overlapping(existing, start, end)
        if conflicts:
            self.logger.debug(
                f"{len(conflicts)} conflict(s) for resource {resource_id} on {on_date} "
                f"{start}-{end}"
            )
        return conflicts

    def is_available(
        self,
        resource_id: str,
        on_date: date,
        start: time,
        end: time,
        exclude_reservation_id: Optional[str] = None,
    ) -> bool:
        return not self.find_conflicts(
            resource_id, on_date, start, end, exclude_reservation_id=exclude_reservation_id
        )

    @BaseService.measure_operation("booked_intervals")
    def booked_intervals(self, resource_id: str, on_date: date) -> List[Reservation]:
        """Non-cancelled reservations of a resource on a date, by start time."""
        return self.reservation_repository.get_active_for_day(resource_id, on_date)

    @BaseService.measure_operation("search_resources")
    def search(self, filters: SearchFilters) -> List[ResourceAvailability]:
        """
        Active resources matching ``filters``, ordered by name.

        With a full date/start/end interval only the free resources are
        returned; conflicts for every candidate are fetched in one query.
        """
        resources = self.resource_repository.search_active(
            city=filters.city, state=filters.state, min_capacity=filters.min_capacity
        )
        on_date, start, end = filters.on_date, filters.start, filters.end
        if on_date is None or start is None or end is None:
            return [ResourceAvailability(resource=r, available=None) for r in resources]

        by_resource = self.reservation_repository.get_active_for_resources_on_date(
            [r.id for r in resources], on_date
        )
        results = [
            ResourceAvailability(resource=r, available=True)
            for r in resources
            if not self._overlapping(by_resource.get(r.id, []), start, end)
        ]
        self.log_operation(
            "search_resources",
            candidates=len(resources),
            available=len(results),
            date=on_date.isoformat(),
        )
        return results
