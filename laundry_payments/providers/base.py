"""
Abstract payment provider interface.

Every payment method (bank transfer today, card processing later) implements
this contract so the payment service can drive them all the same way. The
interface carries no shared behaviour; common validation and reference
generation live in ProviderSupport, which providers compose.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Optional, Protocol, runtime_checkable

from laundry_payments.models.enums import PaymentProviderType
from laundry_payments.payments.types import (
    ConfirmPaymentRequest,
    CreatePaymentRequest,
    PaymentInstructions,
    PaymentProviderConfig,
    PaymentResult,
    RefundRequest,
)


class PaymentProvider(ABC):
    """Lifecycle contract for a single payment method."""

    @property
    @abstractmethod
    def type(self) -> PaymentProviderType:
        ...

    @property
    @abstractmethod
    def config(self) -> PaymentProviderConfig:
        ...

    @abstractmethod
    async def initialize(self) -> None:
        """One-time setup. Repeated calls are no-ops."""
        ...

    @abstractmethod
    def is_available(self) -> bool:
        """True only if initialized and enabled in the current config."""
        ...

    @abstractmethod
    async def create_payment(self, request: CreatePaymentRequest) -> PaymentResult:
        """
        Validate and persist a new pending payment.

        Validation failures return a failed result and persist nothing.
        """
        ...

    @abstractmethod
    async def confirm_payment(self, request: ConfirmPaymentRequest) -> PaymentResult:
        ...

    @abstractmethod
    async def get_payment_status(self, payment_id: str) -> PaymentResult:
        ...

    @abstractmethod
    async def cancel_payment(self, payment_id: str) -> PaymentResult:
        """Cancel a payment. Only legal while it is pending."""
        ...

    @abstractmethod
    async def refund_payment(self, request: RefundRequest) -> PaymentResult:
        """Refund all or part of a payment. Only legal once it is completed."""
        ...

    @abstractmethod
    def get_payment_instructions(self) -> PaymentInstructions:
        ...


@runtime_checkable
class SupportsManualReview(Protocol):
    """Providers whose payments are reconciled by an operator."""

    async def approve_payment(
        self,
        payment_id: str,
        admin_notes: Optional[str] = None,
        approved_amount: Optional[Decimal] = None,
    ) -> PaymentResult:
        ...

    async def reject_payment(self, payment_id: str, admin_notes: str) -> PaymentResult:
        ...
