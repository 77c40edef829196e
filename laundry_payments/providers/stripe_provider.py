"""
Card payment provider (stub).

Card processing is not available in the Dominican Republic yet. The provider
implements the full contract so the service and callers need no special
cases, but it never reports itself available and every lifecycle call
returns the same failure without validating, persisting or publishing.

To enable it later: wire in the Stripe SDK in initialize(), implement the
lifecycle methods against PaymentIntents, and let is_available defer to
ProviderSupport like the other providers.
"""

import logging
from typing import Optional

from laundry_payments.config import Settings, settings as default_settings
from laundry_payments.models.enums import PaymentProviderType
from laundry_payments.payments.types import (
    ConfirmPaymentRequest,
    CreatePaymentRequest,
    PaymentInstructions,
    PaymentProviderConfig,
    PaymentResult,
    RefundRequest,
)
from laundry_payments.providers.base import PaymentProvider
from laundry_payments.providers.support import ProviderSupport

logger = logging.getLogger("laundry_payments.providers.stripe")

NOT_AVAILABLE = (
    "Stripe no está disponible en esta región actualmente. "
    "Por favor use transferencia bancaria."
)


def stripe_config(settings: Settings = default_settings) -> PaymentProviderConfig:
    return PaymentProviderConfig(
        type=PaymentProviderType.STRIPE,
        is_enabled=settings.stripe_enabled,
        is_test_mode=settings.stripe_test_mode,
        display_name="Tarjeta de Crédito/Débito",
        description="Pago automático con tarjeta (Visa, Mastercard, AMEX)",
        instructions="Pago seguro procesado por Stripe",
        supported_currencies=("USD", "DOP"),
    )


class StripeProvider(PaymentProvider):
    """Placeholder for card payments; always unavailable."""

    def __init__(self, config: Optional[PaymentProviderConfig] = None, settings: Settings = default_settings):
        self._support = ProviderSupport(config or stripe_config(settings))

    @property
    def type(self) -> PaymentProviderType:
        return PaymentProviderType.STRIPE

    @property
    def config(self) -> PaymentProviderConfig:
        return self._support.config

    async def initialize(self) -> None:
        if self._support.mark_initialized():
            logger.info("Stripe provider initialized (stub mode)")

    def is_available(self) -> bool:
        return False

    async def create_payment(self, request: CreatePaymentRequest) -> PaymentResult:
        return PaymentResult.failure(NOT_AVAILABLE)

    async def confirm_payment(self, request: ConfirmPaymentRequest) -> PaymentResult:
        return PaymentResult.failure(NOT_AVAILABLE)

    async def get_payment_status(self, payment_id: str) -> PaymentResult:
        return PaymentResult.failure(NOT_AVAILABLE)

    async def cancel_payment(self, payment_id: str) -> PaymentResult:
        return PaymentResult.failure(NOT_AVAILABLE)

    async def refund_payment(self, request: RefundRequest) -> PaymentResult:
        return PaymentResult.failure(NOT_AVAILABLE)

    def get_payment_instructions(self) -> PaymentInstructions:
        return PaymentInstructions(
            title="Pago con Tarjeta (No disponible)",
            steps=[
                "Este método de pago estará disponible próximamente",
                "Por favor utiliza transferencia bancaria mientras tanto",
            ],
            notes=[
                "Stripe no está disponible en República Dominicana actualmente",
                "Estamos trabajando para habilitar pagos con tarjeta pronto",
            ],
        )
