# backend/spacebook/routes/v1/outcomes.py
"""
Translation of service outcomes into HTTP errors.

Services return ``ServiceResult`` values; routes call ``unwrap`` to get the
value or raise the matching ``DomainException`` (whose ``code`` is the
outcome kind, so clients can branch on it).
"""

from typing import Callable, Dict, NoReturn, TypeVar

from fastapi import HTTPException, status

from ...core.exceptions import (
    BookingConflictException,
    BusinessRuleException,
    ConflictException,
    DomainException,
    NotFoundException,
    ValidationException,
)
from ...services.results import OutcomeKind, ServiceResult

T = TypeVar("T")

_MESSAGES: Dict[OutcomeKind, str] = {
    OutcomeKind.NOT_FOUND: "The requested record was not found",
    OutcomeKind.TIME_SLOT_UNAVAILABLE: "This time slot conflicts with an existing reservation",
    OutcomeKind.INVALID_RESOURCE: "The resource does not exist, is inactive, or belongs to another branch",
    OutcomeKind.INVALID_INTERVAL: "End time must be after start time",
    OutcomeKind.INVALID_TRANSITION: "This reservation can no longer change state",
    OutcomeKind.CANNOT_DELETE_PAID: "Paid payments cannot be deleted",
    OutcomeKind.OVERPAYMENT_REJECTED: "Payment would exceed the reservation total",
}

_EXCEPTIONS: Dict[OutcomeKind, Callable[..., DomainException]] = {
    OutcomeKind.NOT_FOUND: NotFoundException,
    OutcomeKind.INVALID_RESOURCE: BusinessRuleException,
    OutcomeKind.INVALID_INTERVAL: ValidationException,
    OutcomeKind.INVALID_TRANSITION: ConflictException,
    OutcomeKind.CANNOT_DELETE_PAID: ConflictException,
    OutcomeKind.OVERPAYMENT_REJECTED: BusinessRuleException,
}


def handle_domain_exception(exc: DomainException) -> NoReturn:
    """Convert domain exceptions to HTTP exceptions."""
    if hasattr(exc, "to_http_exception"):
        raise exc.to_http_exception()
    raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


def exception_for(result: ServiceResult) -> DomainException:
    kind = result.kind
    if kind is OutcomeKind.TIME_SLOT_UNAVAILABLE:
        return BookingConflictException(details=result.details)
    factory = _EXCEPTIONS[kind]
    return factory(_MESSAGES[kind], code=kind.value, details=result.details)


def unwrap(result: ServiceResult[T]) -> T:
    """Return the result's value, or raise the HTTP error for its outcome."""
    if result.ok:
        return result.value  # type: ignore[return-value]
    handle_domain_exception(exception_for(result))
