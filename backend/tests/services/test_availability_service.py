# backend/tests/services/test_availability_service.py
"""
Conflict detection and resource search.
"""

from datetime import date, time
from decimal import Decimal
from unittest.mock import MagicMock

import pytest

from spacebook.models import Branch, ReservationStatus
from spacebook.services.availability_service import AvailabilityService
from spacebook.services.results import SearchFilters

BOOKING_DATE = date(2025, 3, 14)


@pytest.fixture
def service(db):
    return AvailabilityService(db)


class TestConflicts:
    def test_free_resource(self, service, resource):
        assert service.is_available(resource.id, BOOKING_DATE, time(9, 0), time(10, 0))

    def test_overlap_found(self, service, resource, seed_reservation):
        existing = seed_reservation(time(9, 0), time(10, 0))

        conflicts = service.find_conflicts(resource.id, BOOKING_DATE, time(9, 59), time(11, 0))

        assert [c.id for c in conflicts] == [existing.id]

    def test_touching_interval_is_free(self, service, resource, seed_reservation):
        seed_reservation(time(9, 0), time(10, 0))
        assert service.is_available(resource.id, BOOKING_DATE, time(10, 0), time(11, 0))
        assert service.is_available(resource.id, BOOKING_DATE, time(8, 0), time(9, 0))

    def test_cancelled_reservations_are_ignored(self, service, resource, seed_reservation):
        seed_reservation(time(9, 0), time(10, 0), status=ReservationStatus.CANCELLED)
        assert service.is_available(resource.id, BOOKING_DATE, time(9, 0), time(10, 0))

    def test_confirmed_reservations_block(self, service, resource, seed_reservation):
        seed_reservation(time(9, 0), time(10, 0), status=ReservationStatus.CONFIRMED)
        assert not service.is_available(resource.id, BOOKING_DATE, time(9, 30), time(9, 45))

    def test_excluded_reservation_does_not_conflict_with_itself(
        self, service, resource, seed_reservation
    ):
        existing = seed_reservation(time(9, 0), time(10, 0))
        assert service.is_available(
            resource.id, BOOKING_DATE, time(9, 30), time(10, 30), exclude_reservation_id=existing.id
        )

    def test_booked_intervals_sorted(self, service, resource, seed_reservation):
        seed_reservation(time(14, 0), time(15, 0))
        seed_reservation(time(9, 0), time(10, 0))
        seed_reservation(time(11, 0), time(12, 0), status=ReservationStatus.CANCELLED)

        booked = service.booked_intervals(resource.id, BOOKING_DATE)

        assert [(r.start_time, r.end_time) for r in booked] == [
            (time(9, 0), time(10, 0)),
            (time(14, 0), time(15, 0)),
        ]


class TestSearch:
    @pytest.fixture
    def directory(self, db, branch, resource, make_resource):
        porto = Branch(name="Ribeira", city="Porto", state="PT")
        db.add(porto)
        db.commit()
        hall = make_resource(name="Hall", capacity=40, hourly_rate=Decimal("300.00"))
        booth = make_resource(name="Booth", capacity=1)
        make_resource(name="Attic", active=False)
        remote = make_resource(name="Cellar", branch_id=porto.id, capacity=12)
        return {"room": resource, "hall": hall, "booth": booth, "remote": remote}

    def test_lists_active_resources_by_name(self, service, directory):
        results = service.search(SearchFilters())

        assert [r.resource.name for r in results] == ["Booth", "Cellar", "Hall", "Room A"]
        assert all(r.available is None for r in results)

    def test_location_and_capacity_filters(self, service, directory):
        results = service.search(SearchFilters(city="Lisbon", min_capacity=5))
        assert [r.resource.name for r in results] == ["Hall", "Room A"]

        results = service.search(SearchFilters(state="PT"))
        assert [r.resource.name for r in results] == ["Cellar"]

    def test_full_interval_returns_only_free_resources(
        self, service, directory, seed_reservation
    ):
        seed_reservation(time(9, 0), time(10, 0))

        results = service.search(
            SearchFilters(city="Lisbon", on_date=BOOKING_DATE, start=time(9, 30), end=time(10, 30))
        )

        assert [r.resource.name for r in results] == ["Booth", "Hall"]
        assert all(r.available is True for r in results)

    def test_partial_interval_skips_availability(self, service, directory, seed_reservation):
        seed_reservation(time(9, 0), time(10, 0))

        results = service.search(SearchFilters(on_date=BOOKING_DATE, start=time(9, 0)))

        assert "Room A" in [r.resource.name for r in results]
        assert all(r.available is None for r in results)

    def test_conflicts_fetched_in_one_batch(self):
        reservation_repository = MagicMock()
        resource_repository = MagicMock()
        resources = [MagicMock(id=f"R{i}") for i in range(3)]
        resource_repository.search_active.return_value = resources
        reservation_repository.get_active_for_resources_on_date.return_value = {}
        service = AvailabilityService(
            MagicMock(),
            reservation_repository=reservation_repository,
            resource_repository=resource_repository,
        )

        results = service.search(
            SearchFilters(on_date=BOOKING_DATE, start=time(9, 0), end=time(10, 0))
        )

        assert len(results) == 3
        reservation_repository.get_active_for_resources_on_date.assert_called_once_with(
            ["R0", "R1", "R2"], BOOKING_DATE
        )
        reservation_repository.get_active_for_day.assert_not_called()
