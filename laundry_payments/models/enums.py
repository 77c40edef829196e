"""Enumerations for the payments domain model."""

from enum import Enum


class PaymentProviderType(str, Enum):
    """Payment methods a provider can be registered for."""

    BANK_TRANSFER = "bank_transfer"
    STRIPE = "stripe"
    PAYPAL = "paypal"


class PaymentStatus(str, Enum):
    """Lifecycle states for a payment record."""

    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"
    REFUNDED = "refunded"


class ActionType(str, Enum):
    """Out-of-band step the payer must take before a payment can advance."""

    REDIRECT = "redirect"
    CONFIRM = "confirm"
    UPLOAD_RECEIPT = "upload_receipt"


class PaymentEventType(str, Enum):
    """Lifecycle events published by the payment service."""

    CREATED = "payment.created"
    CONFIRMED = "payment.confirmed"
    APPROVED = "payment.approved"
    FAILED = "payment.failed"
    CANCELLED = "payment.cancelled"
    REFUNDED = "payment.refunded"


class SubscriptionStatus(str, Enum):
    """Lifecycle states for a branch subscription."""

    TRIAL = "trial"
    ACTIVE = "active"
    PAST_DUE = "past_due"
    SUSPENDED = "suspended"
    CANCELLED = "cancelled"
