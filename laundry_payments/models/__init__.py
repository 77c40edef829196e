from laundry_payments.models.enums import (
    ActionType,
    PaymentEventType,
    PaymentProviderType,
    PaymentStatus,
    SubscriptionStatus,
)
from laundry_payments.models.records import AuditLog, Base, BranchSubscription, SubscriptionPayment

__all__ = [
    "Base",
    "BranchSubscription",
    "SubscriptionPayment",
    "AuditLog",
    "ActionType",
    "PaymentEventType",
    "PaymentProviderType",
    "PaymentStatus",
    "SubscriptionStatus",
]
