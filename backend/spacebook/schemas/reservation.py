# backend/spacebook/schemas/reservation.py
"""
Reservation schemas.

Request bodies are strict: unknown fields are rejected, dates must be
``YYYY-MM-DD`` and times ``HH:MM``. The JSON field for the reservation day
is ``date``.
"""

from datetime import date, datetime, time
from decimal import Decimal
from typing import List, Optional

from pydantic import Field, field_serializer, field_validator, model_validator

from ..models.reservation import ReservationStatus
from ._strict_base import StrictRequestModel
from .base import Money, StandardizedModel, ensure_date_only, parse_time_value, serialize_hhmm
from .payment import PaymentResponse


class ReservationCreate(StrictRequestModel):
    """Claim ``resource_id`` for ``[start_time, end_time)`` on ``date``."""

    resource_id: str = Field(..., min_length=1, description="Resource to book")
    branch_id: str = Field(..., min_length=1, description="Branch that owns the resource")
    customer_id: str = Field(..., min_length=1, description="Booking customer")
    reservation_date: date = Field(..., alias="date", description="Reservation day (YYYY-MM-DD)")
    start_time: time = Field(..., description="Start time (HH:MM)")
    end_time: time = Field(..., description="End time (HH:MM), strictly after start_time")
    deposit_required_pct: Optional[Decimal] = Field(None, ge=0, le=100)
    notes: Optional[str] = Field(None, max_length=1000)

    @field_validator("reservation_date", mode="before")
    @classmethod
    def _enforce_date_only(cls, v: object) -> object:
        return ensure_date_only(v, "date")

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def parse_time_string(cls, v: object) -> object:
        return parse_time_value(v)

    @field_validator("notes")
    @classmethod
    def clean_notes(cls, v: Optional[str]) -> Optional[str]:
        return v.strip() if v else v

    @model_validator(mode="after")
    def validate_time_order(self) -> "ReservationCreate":
        if self.end_time <= self.start_time:
            raise ValueError("End time must be after start time")
        return self


class ReservationUpdate(StrictRequestModel):
    """
    Partial update. Omitted fields stay as they are; any of date/start/end
    triggers a conflict re-check against the merged interval.
    """

    reservation_date: Optional[date] = Field(None, alias="date")
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    notes: Optional[str] = Field(None, max_length=1000)
    deposit_required_pct: Optional[Decimal] = Field(None, ge=0, le=100)

    @field_validator("reservation_date", mode="before")
    @classmethod
    def _enforce_date_only(cls, v: object) -> object:
        return ensure_date_only(v, "date")

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def parse_time_string(cls, v: object) -> object:
        return parse_time_value(v)

    @model_validator(mode="after")
    def validate_time_order(self) -> "ReservationUpdate":
        if self.start_time and self.end_time and self.end_time <= self.start_time:
            raise ValueError("End time must be after start time")
        return self

    @property
    def moves_interval(self) -> bool:
        return any(v is not None for v in (self.reservation_date, self.start_time, self.end_time))


class ReservationResponse(StandardizedModel):
    id: str
    resource_id: str
    branch_id: str
    customer_id: str
    reservation_date: date = Field(..., alias="date")
    start_time: time
    end_time: time
    status: ReservationStatus
    hourly_rate_snapshot: Money
    total_amount: Money
    deposit_required_pct: Decimal
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    confirmed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None

    @field_serializer("start_time", "end_time")
    def _hhmm(self, value: time) -> str:
        return serialize_hhmm(value)

    @field_serializer("deposit_required_pct")
    def _pct(self, value: Decimal) -> str:
        return str(Decimal(str(value)).quantize(Decimal("0.01")))


class ReservationWithPaymentsResponse(ReservationResponse):
    payments: List[PaymentResponse] = Field(default_factory=list)
