from laundry_payments.store.base import PaymentStore, StoreError
from laundry_payments.store.sql import SqlPaymentStore

__all__ = ["PaymentStore", "StoreError", "SqlPaymentStore"]
