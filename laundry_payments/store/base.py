"""
Persistence collaborator for payment records.

Providers never talk to the database directly; they go through this
interface. The one hard requirement on implementations is that
update_payment can be conditioned on the record's current status, which
is what makes cancel/refund/approve transitions safe when two requests
race on the same payment id.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import datetime
from typing import Any, Optional

from laundry_payments.models.records import SubscriptionPayment


class StoreError(Exception):
    """The backing store failed (connectivity, constraint violation, ...)."""


class PaymentStore(ABC):
    """Abstract record store for subscription payments."""

    @abstractmethod
    async def insert_payment(self, values: dict[str, Any]) -> SubscriptionPayment:
        """Insert a new payment record and return it with its generated id."""
        ...

    @abstractmethod
    async def get_payment(
        self,
        payment_id: str,
        payment_method: Optional[str] = None,
    ) -> Optional[SubscriptionPayment]:
        ...

    @abstractmethod
    async def find_payments(
        self,
        status: Optional[Iterable[str]] = None,
        payment_method: Optional[str] = None,
        subscription_id: Optional[str] = None,
        branch_id: Optional[str] = None,
        with_receipt: Optional[bool] = None,
    ) -> list[SubscriptionPayment]:
        ...

    @abstractmethod
    async def update_payment(
        self,
        payment_id: str,
        values: dict[str, Any],
        payment_method: Optional[str] = None,
        expected_statuses: Optional[Iterable[str]] = None,
    ) -> Optional[SubscriptionPayment]:
        """
        Atomically update a payment record.

        When expected_statuses is given, the update only applies if the
        record's current status is one of them.

        Returns:
            The updated record, or None if no row matched.

        Raises:
            StoreError: On any backend failure.
        """
        ...

    @abstractmethod
    async def activate_subscription(
        self,
        subscription_id: str,
        period_start: datetime,
        period_end: datetime,
    ) -> bool:
        """Mark a subscription active for the given billing window. False if it does not exist."""
        ...
