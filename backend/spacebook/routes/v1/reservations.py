# backend/spacebook/routes/v1/reservations.py
"""
Reservation routes - API v1

Versioned reservation endpoints under /api/v1/reservations.
All business logic delegated to ReservationService / PaymentService.

Endpoints:
    GET / - List reservations with optional filters
    POST / - Create a reservation (PENDING, priced at creation)
    GET /by-day - Reservations of one day, by start time
    GET /{reservation_id} - Reservation with its payments
    PATCH /{reservation_id} - Reschedule / edit notes and deposit
    POST /{reservation_id}/confirm - Confirm a reservation
    POST /{reservation_id}/cancel - Cancel a reservation (frees the slot)
    GET /{reservation_id}/payments - Payments of a reservation
    GET /{reservation_id}/payment-summary - Total, paid and remaining
"""

import asyncio
from datetime import date
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from ...api.dependencies import get_payment_service, get_reservation_service
from ...core.exceptions import DomainException
from ...models.reservation import ReservationStatus
from ...repositories.reservation_repository import ReservationFilters
from ...schemas.payment import PaymentResponse, PaymentSummaryResponse
from ...schemas.reservation import (
    ReservationCreate,
    ReservationResponse,
    ReservationUpdate,
    ReservationWithPaymentsResponse,
)
from ...services.payment_service import PaymentService
from ...services.reservation_service import ReservationService
from .outcomes import handle_domain_exception, unwrap

logger = logging.getLogger(__name__)

# V1 router - no prefix here, will be added when mounting in main.py
router = APIRouter(tags=["reservations-v1"])


# ============================================================================
# SECTION 1: Static routes (no path parameters)
# ============================================================================


@router.get("", response_model=List[ReservationResponse])
async def list_reservations(
    branch_id: Optional[str] = Query(None),
    resource_id: Optional[str] = Query(None),
    customer_id: Optional[str] = Query(None),
    reservation_status: Optional[ReservationStatus] = Query(None, alias="status"),
    on_date: Optional[date] = Query(None, alias="date"),
    reservation_service: ReservationService = Depends(get_reservation_service),
) -> List[ReservationResponse]:
    """List reservations, newest date first."""
    filters = ReservationFilters(
        branch_id=branch_id,
        resource_id=resource_id,
        customer_id=customer_id,
        status=reservation_status.value if reservation_status else None,
        reservation_date=on_date,
    )
    reservations = await asyncio.to_thread(reservation_service.list_reservations, filters)
    return [ReservationResponse.model_validate(r) for r in reservations]


@router.post("", response_model=ReservationResponse, status_code=status.HTTP_201_CREATED)
async def create_reservation(
    payload: ReservationCreate,
    reservation_service: ReservationService = Depends(get_reservation_service),
) -> ReservationResponse:
    """
    Create a reservation.

    409 TIME_SLOT_UNAVAILABLE when the interval overlaps another
    non-cancelled reservation of the resource; 422 INVALID_RESOURCE when
    the resource is unknown, inactive or not in ``branch_id``.
    """
    try:
        result = await asyncio.to_thread(reservation_service.create, payload)
        return ReservationResponse.model_validate(unwrap(result))
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/by-day", response_model=List[ReservationResponse])
async def reservations_by_day(
    on_date: date = Query(..., alias="date"),
    branch_id: Optional[str] = Query(None),
    reservation_service: ReservationService = Depends(get_reservation_service),
) -> List[ReservationResponse]:
    reservations = await asyncio.to_thread(
        reservation_service.reservations_by_day, on_date, branch_id
    )
    return [ReservationResponse.model_validate(r) for r in reservations]


# ============================================================================
# SECTION 2: Single reservation routes
# ============================================================================


@router.get("/{reservation_id}", response_model=ReservationWithPaymentsResponse)
async def get_reservation(
    reservation_id: str,
    reservation_service: ReservationService = Depends(get_reservation_service),
) -> ReservationWithPaymentsResponse:
    result = await asyncio.to_thread(reservation_service.get_with_payments, reservation_id)
    return ReservationWithPaymentsResponse.model_validate(unwrap(result))


@router.patch("/{reservation_id}", response_model=ReservationResponse)
async def reschedule_reservation(
    reservation_id: str,
    payload: ReservationUpdate,
    reservation_service: ReservationService = Depends(get_reservation_service),
) -> ReservationResponse:
    """
    Partially update a reservation.

    Supplying any of date/start_time/end_time re-checks the merged interval
    for conflicts (excluding this reservation).
    """
    try:
        result = await asyncio.to_thread(reservation_service.reschedule, reservation_id, payload)
        return ReservationResponse.model_validate(unwrap(result))
    except DomainException as e:
        handle_domain_exception(e)


@router.post("/{reservation_id}/confirm", response_model=ReservationResponse)
async def confirm_reservation(
    reservation_id: str,
    reservation_service: ReservationService = Depends(get_reservation_service),
) -> ReservationResponse:
    try:
        result = await asyncio.to_thread(reservation_service.confirm, reservation_id)
        return ReservationResponse.model_validate(unwrap(result))
    except DomainException as e:
        handle_domain_exception(e)


@router.post("/{reservation_id}/cancel", response_model=ReservationResponse)
async def cancel_reservation(
    reservation_id: str,
    reservation_service: ReservationService = Depends(get_reservation_service),
) -> ReservationResponse:
    """Cancel a reservation. Cancelling twice is not an error."""
    try:
        result = await asyncio.to_thread(reservation_service.cancel, reservation_id)
        return ReservationResponse.model_validate(unwrap(result))
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/{reservation_id}/payments", response_model=List[PaymentResponse])
async def list_reservation_payments(
    reservation_id: str,
    payment_service: PaymentService = Depends(get_payment_service),
) -> List[PaymentResponse]:
    result = await asyncio.to_thread(payment_service.list_payments, reservation_id)
    return [PaymentResponse.model_validate(p) for p in unwrap(result)]


@router.get("/{reservation_id}/payment-summary", response_model=PaymentSummaryResponse)
async def get_payment_summary(
    reservation_id: str,
    payment_service: PaymentService = Depends(get_payment_service),
) -> PaymentSummaryResponse:
    result = await asyncio.to_thread(payment_service.summarize, reservation_id)
    summary = unwrap(result)
    return PaymentSummaryResponse(
        reservation_id=reservation_id,
        total=summary.total,
        paid=summary.paid,
        remaining=summary.remaining,
    )
