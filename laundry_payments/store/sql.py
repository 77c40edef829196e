"""SQLAlchemy implementation of the payment store."""

import logging
from collections.abc import Iterable
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from laundry_payments.models.enums import SubscriptionStatus
from laundry_payments.models.records import BranchSubscription, SubscriptionPayment
from laundry_payments.store.base import PaymentStore, StoreError

logger = logging.getLogger("laundry_payments.store")


class SqlPaymentStore(PaymentStore):
    """
    Payment store backed by an async SQLAlchemy session factory.

    Each call opens its own session and commits before returning, so every
    lifecycle operation is one independent unit of work. Status guards are
    pushed into the UPDATE's WHERE clause; the database serializes races.
    """

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def insert_payment(self, values: dict[str, Any]) -> SubscriptionPayment:
        try:
            async with self._session_factory() as session:
                record = SubscriptionPayment(**values)
                session.add(record)
                await session.commit()
                return record
        except SQLAlchemyError as e:
            raise StoreError(f"Could not insert payment: {e}") from e

    async def get_payment(
        self,
        payment_id: str,
        payment_method: Optional[str] = None,
    ) -> Optional[SubscriptionPayment]:
        stmt = select(SubscriptionPayment).where(SubscriptionPayment.id == payment_id)
        if payment_method:
            stmt = stmt.where(SubscriptionPayment.payment_method == payment_method)
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise StoreError(f"Could not read payment {payment_id}: {e}") from e

    async def find_payments(
        self,
        status: Optional[Iterable[str]] = None,
        payment_method: Optional[str] = None,
        subscription_id: Optional[str] = None,
        branch_id: Optional[str] = None,
        with_receipt: Optional[bool] = None,
    ) -> list[SubscriptionPayment]:
        stmt = select(SubscriptionPayment)

        if status is not None:
            stmt = stmt.where(SubscriptionPayment.status.in_(list(status)))
        if payment_method:
            stmt = stmt.where(SubscriptionPayment.payment_method == payment_method)
        if subscription_id:
            stmt = stmt.where(SubscriptionPayment.subscription_id == subscription_id)
        if branch_id:
            stmt = stmt.where(SubscriptionPayment.branch_id == branch_id)
        if with_receipt is True:
            stmt = stmt.where(SubscriptionPayment.receipt_url.is_not(None))
        elif with_receipt is False:
            stmt = stmt.where(SubscriptionPayment.receipt_url.is_(None))

        stmt = stmt.order_by(SubscriptionPayment.created_at.asc())
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            raise StoreError(f"Could not query payments: {e}") from e

    async def update_payment(
        self,
        payment_id: str,
        values: dict[str, Any],
        payment_method: Optional[str] = None,
        expected_statuses: Optional[Iterable[str]] = None,
    ) -> Optional[SubscriptionPayment]:
        stmt = update(SubscriptionPayment).where(SubscriptionPayment.id == payment_id)
        if payment_method:
            stmt = stmt.where(SubscriptionPayment.payment_method == payment_method)
        if expected_statuses is not None:
            stmt = stmt.where(SubscriptionPayment.status.in_(list(expected_statuses)))
        stmt = stmt.values(**values, updated_at=datetime.now(timezone.utc)).execution_options(
            synchronize_session=False
        )

        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                if result.rowcount == 0:
                    await session.rollback()
                    return None
                await session.commit()
                return await session.get(SubscriptionPayment, payment_id, populate_existing=True)
        except SQLAlchemyError as e:
            raise StoreError(f"Could not update payment {payment_id}: {e}") from e

    async def activate_subscription(
        self,
        subscription_id: str,
        period_start: datetime,
        period_end: datetime,
    ) -> bool:
        now = datetime.now(timezone.utc)
        stmt = (
            update(BranchSubscription)
            .where(BranchSubscription.id == subscription_id)
            .values(
                status=SubscriptionStatus.ACTIVE.value,
                last_payment_at=now,
                past_due_since=None,
                current_period_start=period_start,
                current_period_end=period_end,
                updated_at=now,
            )
            .execution_options(synchronize_session=False)
        )
        try:
            async with self._session_factory() as session:
                result = await session.execute(stmt)
                await session.commit()
        except SQLAlchemyError as e:
            raise StoreError(f"Could not activate subscription {subscription_id}: {e}") from e

        if result.rowcount == 0:
            logger.warning("Subscription %s not found; payment approved without activation", subscription_id)
            return False
        return True
