"""
Outcome kinds map to stable HTTP statuses and problem codes.
"""

from fastapi import HTTPException
import pytest

from spacebook.core.exceptions import (
    BookingConflictException,
    BusinessRuleException,
    ConflictException,
    LockAcquisitionError,
    NotFoundException,
    ValidationException,
)
from spacebook.routes.v1.outcomes import exception_for, unwrap
from spacebook.services.results import OutcomeKind, ServiceResult


@pytest.mark.parametrize(
    "kind,exc_type,status_code",
    [
        (OutcomeKind.NOT_FOUND, NotFoundException, 404),
        (OutcomeKind.TIME_SLOT_UNAVAILABLE, BookingConflictException, 409),
        (OutcomeKind.INVALID_RESOURCE, BusinessRuleException, 422),
        (OutcomeKind.INVALID_INTERVAL, ValidationException, 400),
        (OutcomeKind.INVALID_TRANSITION, ConflictException, 409),
        (OutcomeKind.CANNOT_DELETE_PAID, ConflictException, 409),
        (OutcomeKind.OVERPAYMENT_REJECTED, BusinessRuleException, 422),
    ],
)
def test_failure_outcomes_map_to_http(kind, exc_type, status_code):
    result = ServiceResult.failure(kind, reservation_id="R1")
    exc = exception_for(result)

    assert isinstance(exc, exc_type)
    assert exc.code == kind.value
    http = exc.to_http_exception()
    assert http.status_code == status_code
    assert http.detail["code"] == kind.value
    assert http.detail["details"] == {"reservation_id": "R1"}


def test_unwrap_returns_value_on_success():
    assert unwrap(ServiceResult.success("value")) == "value"


def test_unwrap_deleted_is_ok():
    assert unwrap(ServiceResult(OutcomeKind.DELETED)) is None


def test_unwrap_raises_http_exception():
    with pytest.raises(HTTPException) as exc_info:
        unwrap(ServiceResult.failure(OutcomeKind.NOT_FOUND, payment_id="P1"))
    assert exc_info.value.status_code == 404


def test_lock_error_is_retryable_503():
    http = LockAcquisitionError("resource:R:booking").to_http_exception()
    assert http.status_code == 503
    assert http.headers == {"Retry-After": "1"}
    assert http.detail["code"] == "LOCK_UNAVAILABLE"


def test_result_ok_flags():
    assert ServiceResult.success().ok
    assert not ServiceResult.failure(OutcomeKind.TIME_SLOT_UNAVAILABLE).ok
