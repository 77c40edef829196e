"""
Operator review endpoints for manually reconciled payments.

GET  /admin/payments/pending                    - Payments with a receipt awaiting review.
POST /admin/payments/{provider}/{id}/approve    - Verify the deposit and complete the payment.
POST /admin/payments/{provider}/{id}/reject     - Reject the payment with a reason.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from laundry_payments.api.dependencies import get_payment_service, get_payment_store
from laundry_payments.api.payments import PaymentResultOut, require_provider, result_response
from laundry_payments.models.enums import PaymentProviderType, PaymentStatus
from laundry_payments.payments.service import PaymentService
from laundry_payments.store.base import PaymentStore

router = APIRouter(prefix="/admin/payments", tags=["admin"])


class PaymentRecordOut(BaseModel):
    id: str
    subscription_id: Optional[str]
    branch_id: Optional[str]
    amount: Decimal
    currency: str
    payment_method: str
    status: str
    invoice_number: Optional[str]
    customer_name: Optional[str]
    customer_email: Optional[str]
    period_start: Optional[datetime]
    period_end: Optional[datetime]
    receipt_url: Optional[str]
    receipt_uploaded_at: Optional[datetime]
    notes: Optional[str]
    created_at: Optional[datetime]

    model_config = {"from_attributes": True}


class ApproveBody(BaseModel):
    admin_notes: Optional[str] = None
    approved_amount: Optional[Decimal] = None


class RejectBody(BaseModel):
    admin_notes: str


@router.get("/pending", response_model=list[PaymentRecordOut])
async def list_pending_review(
    provider_type: Optional[PaymentProviderType] = Query(None, description="Filter by payment method"),
    store: PaymentStore = Depends(get_payment_store),
):
    """Payments whose receipt has been uploaded and still need a decision."""
    records = await store.find_payments(
        status=(PaymentStatus.PENDING.value, PaymentStatus.PROCESSING.value),
        payment_method=provider_type.value if provider_type else None,
        with_receipt=True,
    )
    return [PaymentRecordOut.model_validate(r) for r in records]


@router.post("/{provider_type}/{payment_id}/approve", response_model=PaymentResultOut)
async def approve_payment(
    provider_type: PaymentProviderType,
    payment_id: str,
    body: ApproveBody,
    service: PaymentService = Depends(get_payment_service),
):
    require_provider(service, provider_type)
    result = await service.approve_payment(provider_type, payment_id, body.admin_notes, body.approved_amount)
    return result_response(result)


@router.post("/{provider_type}/{payment_id}/reject", response_model=PaymentResultOut)
async def reject_payment(
    provider_type: PaymentProviderType,
    payment_id: str,
    body: RejectBody,
    service: PaymentService = Depends(get_payment_service),
):
    require_provider(service, provider_type)
    result = await service.reject_payment(provider_type, payment_id, body.admin_notes)
    return result_response(result)
