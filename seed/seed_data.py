"""
Seed the database with sample branch subscriptions and payments.

Creates:
  - 4 branch subscriptions (active, trial, past due, suspended)
  - A pending bank transfer for the past-due branch
  - A bank transfer with an uploaded receipt, ready for operator review

Run:
    python -m seed.seed_data
"""

import asyncio
import sys
from datetime import datetime, timedelta, timezone
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from laundry_payments.database import async_session, init_db
from laundry_payments.models.enums import PaymentProviderType
from laundry_payments.models.records import BranchSubscription
from laundry_payments.payments.service import PaymentService
from laundry_payments.payments.types import (
    ConfirmPaymentRequest,
    CreatePaymentRequest,
    PaymentAmount,
    PaymentCustomer,
    PaymentMetadata,
)
from laundry_payments.store.sql import SqlPaymentStore

NOW = datetime.now(timezone.utc)

SUBSCRIPTIONS = [
    {"id": "SUB-001", "branch_id": "BR-CENTRO", "plan_id": "pro", "status": "active",
     "current_period_start": NOW - timedelta(days=10), "current_period_end": NOW + timedelta(days=20)},
    {"id": "SUB-002", "branch_id": "BR-PIANTINI", "plan_id": "basic", "status": "trial",
     "current_period_start": NOW - timedelta(days=3), "current_period_end": NOW + timedelta(days=11)},
    {"id": "SUB-003", "branch_id": "BR-SANTIAGO", "plan_id": "pro", "status": "past_due",
     "current_period_start": NOW - timedelta(days=35), "current_period_end": NOW - timedelta(days=5),
     "past_due_since": NOW - timedelta(days=5)},
    {"id": "SUB-004", "branch_id": "BR-PUNTACANA", "plan_id": "basic", "status": "suspended",
     "current_period_start": NOW - timedelta(days=70), "current_period_end": NOW - timedelta(days=40),
     "past_due_since": NOW - timedelta(days=40)},
]


def _request(sub: dict, amount: int, owner: str, email: str) -> CreatePaymentRequest:
    start = NOW.replace(hour=0, minute=0, second=0, microsecond=0)
    return CreatePaymentRequest(
        amount=PaymentAmount(amount=amount, currency="DOP"),
        customer=PaymentCustomer(id=sub["branch_id"], email=email, name=owner),
        description=f"Suscripción {sub['plan_id']} - {sub['branch_id']}",
        metadata=PaymentMetadata(
            subscription_id=sub["id"],
            branch_id=sub["branch_id"],
            period_start=start.isoformat(),
            period_end=(start + timedelta(days=30)).isoformat(),
        ),
    )


async def seed():
    await init_db()

    async with async_session() as session:
        for sub in SUBSCRIPTIONS:
            session.add(BranchSubscription(**sub))
        await session.commit()

    service = PaymentService(SqlPaymentStore(async_session))
    await service.initialize()

    pending = await service.create_payment(
        PaymentProviderType.BANK_TRANSFER,
        _request(SUBSCRIPTIONS[2], 2500, "María Rodríguez", "maria@lavanderiasantiago.do"),
    )
    review = await service.create_payment(
        PaymentProviderType.BANK_TRANSFER,
        _request(SUBSCRIPTIONS[3], 1500, "José Martínez", "jose@lavanderiapc.do"),
    )
    await service.confirm_payment(
        PaymentProviderType.BANK_TRANSFER,
        ConfirmPaymentRequest(
            payment_id=review.payment_id,
            receipt_url="https://storage.example.com/receipts/sub-004.jpg",
            notes="Depósito en Banreservas",
        ),
    )

    print(f"Seeded {len(SUBSCRIPTIONS)} subscriptions")
    print(f"  Pending bank transfer: {pending.payment_id} ({pending.provider_reference})")
    print(f"  Awaiting review:       {review.payment_id} ({review.provider_reference})")


if __name__ == "__main__":
    asyncio.run(seed())
