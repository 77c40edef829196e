"""Liveness endpoint."""

from fastapi import APIRouter, Depends

from laundry_payments.api.dependencies import get_payment_service
from laundry_payments.payments.service import PaymentService

router = APIRouter(tags=["health"])


@router.get("/health")
async def health(service: PaymentService = Depends(get_payment_service)):
    return {
        "status": "ok",
        "payment_service_initialized": service.initialized,
        "available_providers": [p.type.value for p in service.get_available_providers()],
    }
