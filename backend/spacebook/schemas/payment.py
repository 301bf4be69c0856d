# backend/spacebook/schemas/payment.py
"""Payment ledger schemas."""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import Field, field_validator

from ..models.payment import PaymentStatus
from ._strict_base import StrictRequestModel
from .base import Money, StandardizedModel


class PaymentCreate(StrictRequestModel):
    reservation_id: str = Field(..., min_length=1)
    amount: Decimal = Field(..., gt=0, description="Positive amount")
    method: str = Field(..., max_length=50, description="Free-form tag, e.g. card, transfer, PIX")
    purpose: Optional[str] = Field(None, max_length=50, description="e.g. DEPOSIT or RESERVATION")
    external_ref: Optional[str] = Field(None, max_length=255)

    @field_validator("method")
    @classmethod
    def method_not_blank(cls, v: str) -> str:
        cleaned = v.strip()
        if not cleaned:
            raise ValueError("method must not be empty")
        return cleaned


class PaymentMarkPaid(StrictRequestModel):
    external_ref: Optional[str] = Field(None, max_length=255)


class PaymentResponse(StandardizedModel):
    id: str
    reservation_id: str
    amount: Money
    method: str
    status: PaymentStatus
    purpose: Optional[str] = None
    external_ref: Optional[str] = None
    paid_at: Optional[datetime] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PaymentSummaryResponse(StandardizedModel):
    reservation_id: str
    total: Money
    paid: Money
    remaining: Money
