from laundry_payments.providers.bank_transfer import BankTransferProvider
from laundry_payments.providers.base import PaymentProvider, SupportsManualReview
from laundry_payments.providers.stripe_provider import StripeProvider
from laundry_payments.providers.support import ProviderSupport

__all__ = [
    "PaymentProvider",
    "SupportsManualReview",
    "ProviderSupport",
    "BankTransferProvider",
    "StripeProvider",
]
