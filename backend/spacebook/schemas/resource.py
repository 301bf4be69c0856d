# backend/spacebook/schemas/resource.py
"""Resource search and availability responses."""

from datetime import date, time
from typing import Optional

from pydantic import Field, field_serializer

from ..models.reservation import ReservationStatus
from .base import Money, StandardizedModel, serialize_hhmm


class ResourceSearchResult(StandardizedModel):
    resource_id: str
    name: str
    capacity: int
    hourly_rate: Money
    branch_id: str
    branch_name: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    # None when the search did not include a full date/start/end interval
    available: Optional[bool] = None


class AvailabilityResponse(StandardizedModel):
    resource_id: str
    on_date: date = Field(..., alias="date")
    start: time
    end: time
    available: bool

    @field_serializer("start", "end")
    def _hhmm(self, value: time) -> str:
        return serialize_hhmm(value)


class BookedInterval(StandardizedModel):
    reservation_id: str
    start_time: time
    end_time: time
    status: ReservationStatus

    @field_serializer("start_time", "end_time")
    def _hhmm(self, value: time) -> str:
        return serialize_hhmm(value)
