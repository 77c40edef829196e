"""
Payment method discovery endpoints.

GET /providers                      - Every registered provider, enabled or not.
GET /providers/default              - The provider new payments should use.
GET /providers/{type}/instructions  - Human-facing payment instructions.
"""

from dataclasses import asdict
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from laundry_payments.api.dependencies import get_payment_service
from laundry_payments.models.enums import PaymentProviderType
from laundry_payments.payments.service import PaymentService
from laundry_payments.providers.base import PaymentProvider

router = APIRouter(prefix="/providers", tags=["providers"])


class ProviderInfo(BaseModel):
    type: PaymentProviderType
    display_name: str
    description: str
    instructions: Optional[str]
    is_enabled: bool
    is_test_mode: bool
    is_available: bool
    supported_currencies: list[str]
    min_amount: Optional[Decimal]
    max_amount: Optional[Decimal]


class BankAccountOut(BaseModel):
    bank_name: str
    account_number: str
    account_type: str
    account_holder: str
    rnc: Optional[str] = None
    swift: Optional[str] = None
    iban: Optional[str] = None


class InstructionsOut(BaseModel):
    title: str
    steps: list[str]
    bank_accounts: list[BankAccountOut]
    contact_email: Optional[str]
    contact_phone: Optional[str]
    notes: list[str]


def _provider_info(provider: PaymentProvider) -> ProviderInfo:
    config = provider.config
    return ProviderInfo(
        type=provider.type,
        display_name=config.display_name,
        description=config.description,
        instructions=config.instructions,
        is_enabled=config.is_enabled,
        is_test_mode=config.is_test_mode,
        is_available=provider.is_available(),
        supported_currencies=list(config.supported_currencies),
        min_amount=config.min_amount,
        max_amount=config.max_amount,
    )


@router.get("", response_model=list[ProviderInfo])
async def list_providers(service: PaymentService = Depends(get_payment_service)):
    """All registered providers, including the ones not available yet."""
    return [_provider_info(service.get_provider(c.type)) for c in service.get_all_provider_configs()]


@router.get("/default", response_model=ProviderInfo)
async def default_provider(service: PaymentService = Depends(get_payment_service)):
    provider = service.get_default_provider()
    if provider is None:
        raise HTTPException(status_code=404, detail="No payment provider is available")
    return _provider_info(provider)


@router.get("/{provider_type}/instructions", response_model=InstructionsOut)
async def payment_instructions(
    provider_type: PaymentProviderType,
    service: PaymentService = Depends(get_payment_service),
):
    provider = service.get_provider(provider_type)
    if provider is None:
        raise HTTPException(status_code=404, detail=f"Provider not found: {provider_type.value}")
    return InstructionsOut(**asdict(provider.get_payment_instructions()))
