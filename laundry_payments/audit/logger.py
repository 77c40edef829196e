"""
Immutable audit trail for payment operations.

Every published payment event gets an append-only audit log entry with:
  - Payment ID (which payment changed)
  - Provider (which payment method handled it)
  - Action (the event type, e.g. "payment.created")
  - Details (resulting status, reference, error)
  - Timestamp (UTC)

These records are never modified or deleted. The trail is fed by
subscribing an AuditTrail to the payment service's events.
"""

import json
import logging
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from laundry_payments.models.records import AuditLog
from laundry_payments.payments.types import PaymentEvent

logger = logging.getLogger("laundry_payments.audit")


async def log_event(
    session: AsyncSession,
    action: str,
    payment_id: Optional[str] = None,
    provider: Optional[str] = None,
    details: Optional[dict[str, Any]] = None,
) -> AuditLog:
    """
    Create an immutable audit log entry.

    Args:
        session: Database session.
        action: What happened (e.g. "payment.created", "payment.refunded").
        payment_id: The payment this event relates to.
        provider: The payment method that handled it.
        details: Arbitrary context (serialized to JSON).

    Returns:
        The created AuditLog record.
    """
    entry = AuditLog(
        payment_id=payment_id,
        provider=provider,
        action=action,
        details=json.dumps(details, default=str) if details else None,
        timestamp=datetime.now(timezone.utc),
    )
    session.add(entry)
    logger.info(
        "AUDIT | payment=%s provider=%s action=%s | %s",
        payment_id or "-",
        provider or "-",
        action,
        json.dumps(details, default=str)[:200] if details else "",
    )
    return entry


def append_note(existing_notes: Optional[str], message: str) -> str:
    """
    Append a timestamped note to a payment's notes field.

    Builds a running log of what the payer told us on each record so the
    reviewing operator sees it in order.
    """
    prefix = f"[{datetime.now(timezone.utc).strftime('%Y-%m-%d %H:%M UTC')}] "
    new_note = prefix + message
    if not existing_notes:
        return new_note
    return f"{existing_notes}\n{new_note}"


class AuditTrail:
    """Payment event handler that persists each event as an AuditLog row."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    async def __call__(self, event: PaymentEvent) -> None:
        result = event.data
        details = {
            "status": result.status.value,
            "reference": result.provider_reference,
            "requires_action": result.requires_action,
        }
        if result.error:
            details["error"] = result.error

        async with self._session_factory() as session:
            await log_event(
                session,
                event.type.value,
                payment_id=event.payment_id,
                provider=event.provider.value,
                details=details,
            )
            await session.commit()
