"""
Payment lifecycle endpoints.

POST /payments/{provider}                 - Create a payment.
GET  /payments/{provider}/{id}            - Current status of a payment.
POST /payments/{provider}/{id}/confirm    - Payer confirms (e.g. uploads a receipt).
POST /payments/{provider}/{id}/cancel     - Cancel a pending payment.
POST /payments/{provider}/{id}/refund     - Refund a completed payment.

Lifecycle failures are data, not exceptions: the body is always a
PaymentResult and only the HTTP status code tells the outcome.
"""

from decimal import Decimal
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse
from pydantic import BaseModel

from laundry_payments.api.dependencies import get_payment_service
from laundry_payments.models.enums import ActionType, PaymentProviderType, PaymentStatus
from laundry_payments.payments.service import PaymentService
from laundry_payments.payments.types import (
    ConfirmPaymentRequest,
    CreatePaymentRequest,
    PaymentAmount,
    PaymentCustomer,
    PaymentMetadata,
    PaymentResult,
    RefundRequest,
)

router = APIRouter(prefix="/payments", tags=["payments"])


class AmountIn(BaseModel):
    amount: Decimal
    currency: str


class CustomerIn(BaseModel):
    id: str
    email: str
    name: str
    phone: Optional[str] = None


class MetadataIn(BaseModel):
    subscription_id: Optional[str] = None
    branch_id: Optional[str] = None
    invoice_number: Optional[str] = None
    period_start: Optional[str] = None
    period_end: Optional[str] = None
    extra: dict[str, str] = {}


class CreatePaymentBody(BaseModel):
    amount: AmountIn
    customer: CustomerIn
    description: str
    metadata: Optional[MetadataIn] = None
    return_url: Optional[str] = None
    cancel_url: Optional[str] = None


class ConfirmPaymentBody(BaseModel):
    provider_reference: Optional[str] = None
    receipt_url: Optional[str] = None
    notes: Optional[str] = None


class RefundBody(BaseModel):
    amount: Optional[AmountIn] = None
    reason: Optional[str] = None


class PaymentResultOut(BaseModel):
    success: bool
    status: PaymentStatus
    payment_id: Optional[str] = None
    provider_reference: Optional[str] = None
    redirect_url: Optional[str] = None
    error: Optional[str] = None
    requires_action: bool = False
    action_type: Optional[ActionType] = None
    action_data: Optional[dict[str, Any]] = None

    model_config = {"from_attributes": True}


def result_response(result: PaymentResult, success_code: int = 200, failure_code: int = 409) -> JSONResponse:
    body = PaymentResultOut.model_validate(result)
    return JSONResponse(
        status_code=success_code if result.success else failure_code,
        content=body.model_dump(mode="json"),
    )


def require_provider(service: PaymentService, provider_type: PaymentProviderType) -> None:
    if service.get_provider(provider_type) is None:
        raise HTTPException(status_code=404, detail=f"Provider not found: {provider_type.value}")


@router.post("/{provider_type}", response_model=PaymentResultOut, status_code=201)
async def create_payment(
    provider_type: PaymentProviderType,
    body: CreatePaymentBody,
    service: PaymentService = Depends(get_payment_service),
):
    """
    Create a payment with the given provider.

    A bank transfer comes back pending with requires_action=upload_receipt
    and the accounts the payer may deposit into.
    """
    require_provider(service, provider_type)
    request = CreatePaymentRequest(
        amount=PaymentAmount(amount=body.amount.amount, currency=body.amount.currency),
        customer=PaymentCustomer(**body.customer.model_dump()),
        description=body.description,
        metadata=PaymentMetadata(**body.metadata.model_dump()) if body.metadata else None,
        return_url=body.return_url,
        cancel_url=body.cancel_url,
    )
    result = await service.create_payment(provider_type, request)
    return result_response(result, success_code=201, failure_code=422)


@router.get("/{provider_type}/{payment_id}", response_model=PaymentResultOut)
async def get_payment_status(
    provider_type: PaymentProviderType,
    payment_id: str,
    service: PaymentService = Depends(get_payment_service),
):
    require_provider(service, provider_type)
    result = await service.get_payment_status(provider_type, payment_id)
    return result_response(result, failure_code=404)


@router.post("/{provider_type}/{payment_id}/confirm", response_model=PaymentResultOut)
async def confirm_payment(
    provider_type: PaymentProviderType,
    payment_id: str,
    body: ConfirmPaymentBody,
    service: PaymentService = Depends(get_payment_service),
):
    require_provider(service, provider_type)
    result = await service.confirm_payment(
        provider_type,
        ConfirmPaymentRequest(payment_id=payment_id, **body.model_dump()),
    )
    return result_response(result)


@router.post("/{provider_type}/{payment_id}/cancel", response_model=PaymentResultOut)
async def cancel_payment(
    provider_type: PaymentProviderType,
    payment_id: str,
    service: PaymentService = Depends(get_payment_service),
):
    require_provider(service, provider_type)
    result = await service.cancel_payment(provider_type, payment_id)
    return result_response(result)


@router.post("/{provider_type}/{payment_id}/refund", response_model=PaymentResultOut)
async def refund_payment(
    provider_type: PaymentProviderType,
    payment_id: str,
    body: RefundBody,
    service: PaymentService = Depends(get_payment_service),
):
    """Refund a completed payment; omit amount for a full refund."""
    require_provider(service, provider_type)
    amount = None
    if body.amount:
        amount = PaymentAmount(amount=body.amount.amount, currency=body.amount.currency)
    result = await service.refund_payment(
        provider_type,
        RefundRequest(payment_id=payment_id, amount=amount, reason=body.reason),
    )
    return result_response(result)
