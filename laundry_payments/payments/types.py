"""
Request, result and configuration types shared by every payment provider.

These are plain dataclasses: providers and the service exchange them
in-process, and the HTTP layer converts them to pydantic schemas at the edge.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from laundry_payments.models.enums import (
    ActionType,
    PaymentEventType,
    PaymentProviderType,
    PaymentStatus,
)


@dataclass(frozen=True)
class PaymentAmount:
    """An amount in a given ISO 4217 currency."""

    amount: Decimal
    currency: str

    def __post_init__(self):
        if not isinstance(self.amount, Decimal):
            object.__setattr__(self, "amount", Decimal(str(self.amount)))


@dataclass
class PaymentCustomer:
    """The payer. Opaque to the service; providers decide what to use."""

    id: str
    email: str
    name: str
    phone: Optional[str] = None


@dataclass
class PaymentMetadata:
    """Well-known billing fields plus an open bag carried through to the record."""

    subscription_id: Optional[str] = None
    branch_id: Optional[str] = None
    invoice_number: Optional[str] = None
    period_start: Optional[str] = None  # ISO 8601
    period_end: Optional[str] = None  # ISO 8601
    extra: dict[str, str] = field(default_factory=dict)

    def to_dict(self) -> dict[str, str]:
        # Well-known fields win over same-named keys in extra.
        data = dict(self.extra)
        data.update({k: v for k, v in asdict(self).items() if k != "extra" and v is not None})
        return data


@dataclass
class CreatePaymentRequest:
    amount: PaymentAmount
    customer: PaymentCustomer
    description: str
    metadata: Optional[PaymentMetadata] = None
    return_url: Optional[str] = None
    cancel_url: Optional[str] = None


@dataclass
class ConfirmPaymentRequest:
    payment_id: str
    provider_reference: Optional[str] = None
    receipt_url: Optional[str] = None
    notes: Optional[str] = None


@dataclass
class RefundRequest:
    payment_id: str
    amount: Optional[PaymentAmount] = None  # Partial refund if provided
    reason: Optional[str] = None


@dataclass(frozen=True)
class PaymentProviderConfig:
    """Static, read-only descriptor of a payment method."""

    type: PaymentProviderType
    is_enabled: bool
    display_name: str
    description: str
    supported_currencies: tuple[str, ...]
    is_test_mode: bool = False
    instructions: Optional[str] = None
    min_amount: Optional[Decimal] = None
    max_amount: Optional[Decimal] = None


@dataclass
class PaymentResult:
    """Uniform response envelope for every lifecycle call."""

    success: bool
    status: PaymentStatus
    payment_id: Optional[str] = None
    provider_reference: Optional[str] = None
    redirect_url: Optional[str] = None
    error: Optional[str] = None
    requires_action: bool = False
    action_type: Optional[ActionType] = None
    action_data: Optional[dict[str, Any]] = None

    @classmethod
    def failure(cls, error: str) -> "PaymentResult":
        return cls(success=False, status=PaymentStatus.FAILED, error=error)


@dataclass(frozen=True)
class BankAccountInfo:
    bank_name: str
    account_number: str
    account_type: str
    account_holder: str
    rnc: Optional[str] = None  # Dominican taxpayer id
    swift: Optional[str] = None
    iban: Optional[str] = None


@dataclass
class PaymentInstructions:
    """Human-facing guidance for completing a payment. Display only."""

    title: str
    steps: list[str]
    bank_accounts: list[BankAccountInfo] = field(default_factory=list)
    contact_email: Optional[str] = None
    contact_phone: Optional[str] = None
    notes: list[str] = field(default_factory=list)


@dataclass(frozen=True)
class PaymentEvent:
    type: PaymentEventType
    payment_id: str
    provider: PaymentProviderType
    timestamp: datetime
    data: PaymentResult
