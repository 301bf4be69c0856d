# backend/spacebook/routes/v1/payments.py
"""
Payment routes - API v1

Endpoints:
    POST / - Record a PENDING payment against a reservation
    GET /{payment_id} - Payment details
    POST /{payment_id}/paid - Mark a payment PAID
    DELETE /{payment_id} - Delete a PENDING payment (PAID ones are kept)
"""

import asyncio
import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, Response, status

from ...api.dependencies import get_payment_service
from ...core.exceptions import DomainException
from ...schemas.payment import PaymentCreate, PaymentMarkPaid, PaymentResponse
from ...services.payment_service import PaymentService
from .outcomes import handle_domain_exception, unwrap

logger = logging.getLogger(__name__)

router = APIRouter(tags=["payments-v1"])


@router.post("", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED)
async def record_payment(
    payload: PaymentCreate,
    payment_service: PaymentService = Depends(get_payment_service),
) -> PaymentResponse:
    try:
        result = await asyncio.to_thread(payment_service.record_payment, payload)
        return PaymentResponse.model_validate(unwrap(result))
    except DomainException as e:
        handle_domain_exception(e)


@router.get("/{payment_id}", response_model=PaymentResponse)
async def get_payment(
    payment_id: str,
    payment_service: PaymentService = Depends(get_payment_service),
) -> PaymentResponse:
    result = await asyncio.to_thread(payment_service.get_payment, payment_id)
    return PaymentResponse.model_validate(unwrap(result))


@router.post("/{payment_id}/paid", response_model=PaymentResponse)
async def mark_payment_paid(
    payment_id: str,
    payload: Optional[PaymentMarkPaid] = Body(None),
    payment_service: PaymentService = Depends(get_payment_service),
) -> PaymentResponse:
    """Mark as PAID; an omitted ``external_ref`` keeps the stored one."""
    external_ref = payload.external_ref if payload else None
    try:
        result = await asyncio.to_thread(payment_service.mark_paid, payment_id, external_ref)
        return PaymentResponse.model_validate(unwrap(result))
    except DomainException as e:
        handle_domain_exception(e)


@router.delete(
    "/{payment_id}", status_code=status.HTTP_204_NO_CONTENT, response_class=Response
)
async def delete_payment(
    payment_id: str,
    payment_service: PaymentService = Depends(get_payment_service),
) -> Response:
    """Delete a PENDING payment; 409 CANNOT_DELETE_PAID for a PAID one."""
    try:
        result = await asyncio.to_thread(payment_service.delete_payment, payment_id)
        unwrap(result)
    except DomainException as e:
        handle_domain_exception(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
