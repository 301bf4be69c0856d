# backend/spacebook/services/results.py
"""
Typed outcomes returned by booking and ledger operations.

Not-found, conflicts and refusals are values, not exceptions: a caller
branches on ``ServiceResult.kind`` and never has to parse a message.
"""

from dataclasses import dataclass, field
from datetime import date, time
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Generic, Optional, TypeVar

from ..models.resource import Resource

T = TypeVar("T")


class OutcomeKind(str, Enum):
    OK = "OK"
    DELETED = "DELETED"
    NOT_FOUND = "NOT_FOUND"
    TIME_SLOT_UNAVAILABLE = "TIME_SLOT_UNAVAILABLE"
    INVALID_RESOURCE = "INVALID_RESOURCE"
    INVALID_INTERVAL = "INVALID_INTERVAL"
    INVALID_TRANSITION = "INVALID_TRANSITION"
    CANNOT_DELETE_PAID = "CANNOT_DELETE_PAID"
    OVERPAYMENT_REJECTED = "OVERPAYMENT_REJECTED"


@dataclass(frozen=True)
class ServiceResult(Generic[T]):
    kind: OutcomeKind
    value: Optional[T] = None
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.kind in (OutcomeKind.OK, OutcomeKind.DELETED)

    @classmethod
    def success(cls, value: Optional[T] = None) -> "ServiceResult[T]":
        return cls(OutcomeKind.OK, value)

    @classmethod
    def failure(cls, kind: OutcomeKind, **details: Any) -> "ServiceResult[T]":
        return cls(kind, None, details)


@dataclass(frozen=True)
class PaymentSummary:
    """Rounded ledger totals; ``remaining`` never goes below zero."""

    total: Decimal
    paid: Decimal
    remaining: Decimal


@dataclass
class SearchFilters:
    """
    Resource search criteria.

    Availability is only evaluated when ``on_date``, ``start`` and ``end`` are
    all present; otherwise ``ResourceAvailability.available`` is None.
    """

    city: Optional[str] = None
    state: Optional[str] = None
    min_capacity: Optional[int] = None
    on_date: Optional[date] = None
    start: Optional[time] = None
    end: Optional[time] = None


@dataclass
class ResourceAvailability:
    resource: Resource
    available: Optional[bool]
