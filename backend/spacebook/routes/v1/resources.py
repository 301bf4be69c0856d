# backend/spacebook/routes/v1/resources.py
"""
Resource availability routes - API v1

Endpoints:
    GET /search - Active resources by location/capacity, optionally only free ones
    GET /{resource_id}/availability - Is the resource free for date/start/end
    GET /{resource_id}/booked - Non-cancelled intervals on a date
"""

import asyncio
from datetime import date, time
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from fastapi.exceptions import RequestValidationError

from ...api.dependencies import get_availability_service
from ...domain.intervals import parse_hhmm
from ...schemas.resource import AvailabilityResponse, BookedInterval, ResourceSearchResult
from ...services.availability_service import AvailabilityService
from ...services.results import SearchFilters

logger = logging.getLogger(__name__)

router = APIRouter(tags=["resources-v1"])


def _parse_query_time(value: str, name: str) -> time:
    try:
        return parse_hhmm(value)
    except ValueError as exc:
        raise RequestValidationError(
            [{"loc": ("query", name), "msg": str(exc), "type": "value_error", "input": value}]
        ) from exc


def _require_order(start: time, end: time) -> None:
    if end <= start:
        raise RequestValidationError(
            [
                {
                    "loc": ("query", "end"),
                    "msg": "End time must be after start time",
                    "type": "value_error",
                    "input": end.strftime("%H:%M"),
                }
            ]
        )


@router.get("/search", response_model=List[ResourceSearchResult])
async def search_resources(
    city: Optional[str] = Query(None),
    state: Optional[str] = Query(None),
    capacity: Optional[int] = Query(None, ge=1, description="Minimum capacity"),
    on_date: Optional[date] = Query(None, alias="date"),
    start: Optional[str] = Query(None, description="HH:MM"),
    end: Optional[str] = Query(None, description="HH:MM"),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> List[ResourceSearchResult]:
    """
    Search active resources, ordered by name.

    When date, start and end are all given only resources free for that
    interval are returned.
    """
    start_time = _parse_query_time(start, "start") if start is not None else None
    end_time = _parse_query_time(end, "end") if end is not None else None
    if start_time and end_time:
        _require_order(start_time, end_time)

    filters = SearchFilters(
        city=city,
        state=state,
        min_capacity=capacity,
        on_date=on_date,
        start=start_time,
        end=end_time,
    )
    rows = await asyncio.to_thread(availability_service.search, filters)
    return [
        ResourceSearchResult(
            resource_id=row.resource.id,
            name=row.resource.name,
            capacity=row.resource.capacity,
            hourly_rate=row.resource.hourly_rate,
            branch_id=row.resource.branch_id,
            branch_name=row.resource.branch.name if row.resource.branch else None,
            city=row.resource.branch.city if row.resource.branch else None,
            state=row.resource.branch.state if row.resource.branch else None,
            available=row.available,
        )
        for row in rows
    ]


@router.get("/{resource_id}/availability", response_model=AvailabilityResponse)
async def check_availability(
    resource_id: str,
    on_date: date = Query(..., alias="date"),
    start: str = Query(..., description="HH:MM"),
    end: str = Query(..., description="HH:MM"),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> AvailabilityResponse:
    start_time = _parse_query_time(start, "start")
    end_time = _parse_query_time(end, "end")
    _require_order(start_time, end_time)

    available = await asyncio.to_thread(
        availability_service.is_available, resource_id, on_date, start_time, end_time
    )
    return AvailabilityResponse(
        resource_id=resource_id, on_date=on_date, start=start_time, end=end_time, available=available
    )


@router.get("/{resource_id}/booked", response_model=List[BookedInterval])
async def booked_intervals(
    resource_id: str,
    on_date: date = Query(..., alias="date"),
    availability_service: AvailabilityService = Depends(get_availability_service),
) -> List[BookedInterval]:
    reservations = await asyncio.to_thread(
        availability_service.booked_intervals, resource_id, on_date
    )
    return [
        BookedInterval(
            reservation_id=r.id, start_time=r.start_time, end_time=r.end_time, status=r.status
        )
        for r in reservations
    ]
