"""Shared test fixtures."""

from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from laundry_payments.models.records import Base, BranchSubscription
from laundry_payments.payments.service import PaymentService
from laundry_payments.payments.types import (
    CreatePaymentRequest,
    PaymentAmount,
    PaymentCustomer,
    PaymentMetadata,
)
from laundry_payments.providers.bank_transfer import BankTransferProvider
from laundry_payments.store.base import PaymentStore, StoreError
from laundry_payments.store.sql import SqlPaymentStore


@pytest_asyncio.fixture
async def engine(tmp_path):
    """A fresh SQLite database file for each test."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'payments.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def store(session_factory):
    return SqlPaymentStore(session_factory)


@pytest_asyncio.fixture
async def bank_provider(store):
    provider = BankTransferProvider(store)
    await provider.initialize()
    return provider


@pytest_asyncio.fixture
async def service(store):
    service = PaymentService(store)
    await service.initialize()
    return service


@pytest_asyncio.fixture
async def past_due_subscription(session_factory):
    """A branch subscription that fell behind on payments."""
    async with session_factory() as session:
        sub = BranchSubscription(
            id="SUB-003",
            branch_id="BR-SANTIAGO",
            plan_id="pro",
            status="past_due",
            current_period_start=datetime(2026, 8, 1, tzinfo=timezone.utc),
            current_period_end=datetime(2026, 8, 31, tzinfo=timezone.utc),
            past_due_since=datetime(2026, 9, 1, tzinfo=timezone.utc),
        )
        session.add(sub)
        await session.commit()
    return sub


def _make_request(
    amount="500",
    currency: str = "DOP",
    subscription_id: Optional[str] = None,
    period_start: Optional[str] = None,
    period_end: Optional[str] = None,
) -> CreatePaymentRequest:
    return CreatePaymentRequest(
        amount=PaymentAmount(amount=Decimal(amount), currency=currency),
        customer=PaymentCustomer(id="BR-SANTIAGO", email="maria@lavanderia.do", name="María Rodríguez"),
        description="Suscripción mensual plan Pro",
        metadata=PaymentMetadata(
            subscription_id=subscription_id,
            branch_id="BR-SANTIAGO",
            period_start=period_start,
            period_end=period_end,
            extra={"channel": "portal"},
        ),
    )


class _FailingStore(PaymentStore):
    """A store whose backend is down."""

    async def insert_payment(self, values):
        raise StoreError("connection refused")

    async def get_payment(self, payment_id, payment_method=None):
        raise StoreError("connection refused")

    async def find_payments(self, status=None, payment_method=None, subscription_id=None,
                            branch_id=None, with_receipt=None):
        raise StoreError("connection refused")

    async def update_payment(self, payment_id, values, payment_method=None, expected_statuses=None):
        raise StoreError("connection refused")

    async def activate_subscription(self, subscription_id, period_start, period_end):
        raise StoreError("connection refused")


@pytest.fixture
def make_request():
    """Factory for bank-transfer CreatePaymentRequests."""
    return _make_request


@pytest.fixture
def failing_store():
    return _FailingStore()
