"""
Payment service: the orchestrator in front of every payment provider.

Callers never touch a provider directly. They name a PaymentProviderType and
the service:
  1. Resolves the provider from its registry
  2. Refuses unknown providers (and, for new payments, unavailable ones)
  3. Delegates the lifecycle call
  4. Publishes the matching event when the call succeeds

Lifecycle: construct once at process startup with the record store,
await initialize(), and pass the instance to whoever needs it. It lives for
the process lifetime; there is no module-level instance.

The service adds no locking around a payment id. Two concurrent calls on
the same payment are serialized by the store's status-conditioned updates.
"""

import logging
from collections.abc import Sequence
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional, Union

from laundry_payments.config import Settings, settings as default_settings
from laundry_payments.models.enums import PaymentEventType, PaymentProviderType
from laundry_payments.payments.events import PaymentEventBus, PaymentEventHandler, Unsubscribe
from laundry_payments.payments.types import (
    ConfirmPaymentRequest,
    CreatePaymentRequest,
    PaymentEvent,
    PaymentProviderConfig,
    PaymentResult,
    RefundRequest,
)
from laundry_payments.providers.bank_transfer import BankTransferProvider
from laundry_payments.providers.base import PaymentProvider, SupportsManualReview
from laundry_payments.providers.stripe_provider import StripeProvider
from laundry_payments.store.base import PaymentStore

logger = logging.getLogger("laundry_payments.service")

PROVIDER_NOT_FOUND = "Proveedor no encontrado"

ProviderKey = Union[PaymentProviderType, str]


def _resolve_type(provider_type: ProviderKey) -> Optional[PaymentProviderType]:
    """Map a provider type or its string value to the enum; None if unknown."""
    try:
        return PaymentProviderType(provider_type)
    except ValueError:
        return None


def build_default_providers(store: PaymentStore, settings: Settings = default_settings) -> list[PaymentProvider]:
    """Every payment method this deployment knows about, in registry order."""
    return [
        BankTransferProvider(store, settings=settings),
        StripeProvider(settings=settings),
    ]


class PaymentService:
    """Provider registry, lifecycle delegation and event publishing."""

    def __init__(
        self,
        store: PaymentStore,
        providers: Optional[Sequence[PaymentProvider]] = None,
        settings: Settings = default_settings,
        event_bus: Optional[PaymentEventBus] = None,
    ):
        self._store = store
        self._settings = settings
        self._pending_providers = providers
        self._providers: dict[PaymentProviderType, PaymentProvider] = {}
        self._events = event_bus or PaymentEventBus()
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    async def initialize(self) -> None:
        """Build, initialize and register every provider. Idempotent."""
        if self._initialized:
            return

        providers = self._pending_providers
        if providers is None:
            providers = build_default_providers(self._store, self._settings)

        for provider in providers:
            await provider.initialize()
            if provider.type in self._providers:
                raise ValueError(f"Duplicate payment provider: {provider.type.value}")
            self._providers[provider.type] = provider

        self._initialized = True
        logger.info(
            "Payment service initialized: %s",
            ", ".join(
                f"{p.type.value}={'available' if p.is_available() else 'unavailable'}"
                for p in self._providers.values()
            ),
        )

    # --- Registry ---

    def get_provider(self, provider_type: ProviderKey) -> Optional[PaymentProvider]:
        resolved = _resolve_type(provider_type)
        if resolved is None:
            return None
        return self._providers.get(resolved)

    def get_available_providers(self) -> list[PaymentProvider]:
        return [p for p in self._providers.values() if p.is_available()]

    def get_all_provider_configs(self) -> list[PaymentProviderConfig]:
        """Configs for every registered provider, including disabled ones."""
        return [p.config for p in self._providers.values()]

    def get_default_provider(self) -> Optional[PaymentProvider]:
        """Bank transfer if it is available, else the first available provider, else None."""
        available = self.get_available_providers()
        for provider in available:
            if provider.type == PaymentProviderType.BANK_TRANSFER:
                return provider
        return available[0] if available else None

    # --- Lifecycle ---

    async def create_payment(
        self,
        provider_type: ProviderKey,
        request: CreatePaymentRequest,
    ) -> PaymentResult:
        provider = self.get_provider(provider_type)

        if provider is None:
            label = getattr(provider_type, "value", provider_type)
            return PaymentResult.failure(f"Proveedor de pago '{label}' no encontrado")

        if not provider.is_available():
            return PaymentResult.failure(
                f"Proveedor de pago '{provider.config.display_name}' no está disponible"
            )

        result = await provider.create_payment(request)

        if result.success and result.payment_id:
            await self._publish(PaymentEventType.CREATED, result.payment_id, provider.type, result)

        return result

    async def confirm_payment(
        self,
        provider_type: ProviderKey,
        request: ConfirmPaymentRequest,
    ) -> PaymentResult:
        provider = self.get_provider(provider_type)
        if provider is None:
            return PaymentResult.failure(PROVIDER_NOT_FOUND)

        result = await provider.confirm_payment(request)

        if result.success:
            await self._publish(PaymentEventType.CONFIRMED, request.payment_id, provider.type, result)

        return result

    async def get_payment_status(
        self,
        provider_type: ProviderKey,
        payment_id: str,
    ) -> PaymentResult:
        provider = self.get_provider(provider_type)
        if provider is None:
            return PaymentResult.failure(PROVIDER_NOT_FOUND)

        return await provider.get_payment_status(payment_id)

    async def cancel_payment(
        self,
        provider_type: ProviderKey,
        payment_id: str,
    ) -> PaymentResult:
        provider = self.get_provider(provider_type)
        if provider is None:
            return PaymentResult.failure(PROVIDER_NOT_FOUND)

        result = await provider.cancel_payment(payment_id)

        if result.success:
            await self._publish(PaymentEventType.CANCELLED, payment_id, provider.type, result)

        return result

    async def refund_payment(
        self,
        provider_type: ProviderKey,
        request: RefundRequest,
    ) -> PaymentResult:
        provider = self.get_provider(provider_type)
        if provider is None:
            return PaymentResult.failure(PROVIDER_NOT_FOUND)

        result = await provider.refund_payment(request)

        if result.success:
            await self._publish(PaymentEventType.REFUNDED, request.payment_id, provider.type, result)

        return result

    # --- Operator review (only for providers that support it) ---

    async def approve_payment(
        self,
        provider_type: ProviderKey,
        payment_id: str,
        admin_notes: Optional[str] = None,
        approved_amount: Optional[Decimal] = None,
    ) -> PaymentResult:
        provider = self.get_provider(provider_type)
        if provider is None:
            return PaymentResult.failure(PROVIDER_NOT_FOUND)

        if not isinstance(provider, SupportsManualReview):
            return PaymentResult.failure("Este proveedor no admite aprobación manual")

        result = await provider.approve_payment(payment_id, admin_notes, approved_amount)

        if result.success:
            await self._publish(PaymentEventType.APPROVED, payment_id, provider.type, result)

        return result

    async def reject_payment(
        self,
        provider_type: ProviderKey,
        payment_id: str,
        admin_notes: str,
    ) -> PaymentResult:
        provider = self.get_provider(provider_type)
        if provider is None:
            return PaymentResult.failure(PROVIDER_NOT_FOUND)

        if not isinstance(provider, SupportsManualReview):
            return PaymentResult.failure("Este proveedor no admite aprobación manual")

        result = await provider.reject_payment(payment_id, admin_notes)

        if result.success:
            await self._publish(PaymentEventType.FAILED, payment_id, provider.type, result)

        return result

    # --- Events ---

    def on_payment_event(self, handler: PaymentEventHandler) -> Unsubscribe:
        """Subscribe to lifecycle events. Returns the unsubscribe callable."""
        return self._events.subscribe(handler)

    async def _publish(
        self,
        event_type: PaymentEventType,
        payment_id: str,
        provider_type: PaymentProviderType,
        result: PaymentResult,
    ) -> None:
        await self._events.publish(PaymentEvent(
            type=event_type,
            payment_id=payment_id,
            provider=provider_type,
            timestamp=datetime.now(timezone.utc),
            data=result,
        ))
