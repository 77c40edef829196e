"""SQLAlchemy models for payment records and the subscriptions they pay for."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import DeclarativeBase, relationship


class Base(DeclarativeBase):
    pass


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4())


class BranchSubscription(Base):
    """
    A branch's subscription to the SaaS plan.

    Payments reference a subscription; approving a bank transfer for it
    re-activates the subscription and moves its billing window forward.
    """

    __tablename__ = "branch_subscriptions"

    id = Column(String(36), primary_key=True, default=_new_id)
    branch_id = Column(String(36), nullable=False, index=True)
    plan_id = Column(String(36), nullable=True)
    status = Column(String(20), nullable=False, default="trial")
    current_period_start = Column(DateTime(timezone=True), nullable=True)
    current_period_end = Column(DateTime(timezone=True), nullable=True)
    last_payment_at = Column(DateTime(timezone=True), nullable=True)
    past_due_since = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    payments = relationship("SubscriptionPayment", back_populates="subscription", lazy="raise")


class SubscriptionPayment(Base):
    """
    A single payment attempt, owned by exactly one provider.

    payment_method never changes after insert. Status moves forward only:
    pending → processing → completed → refunded, with cancelled (from
    pending) and failed (rejected on review) as the other terminal states.
    """

    __tablename__ = "subscription_payments"

    id = Column(String(36), primary_key=True, default=_new_id)
    subscription_id = Column(String(36), ForeignKey("branch_subscriptions.id"), nullable=True, index=True)
    branch_id = Column(String(36), nullable=True, index=True)
    amount = Column(Numeric(12, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="DOP")
    payment_method = Column(String(20), nullable=False, index=True)
    status = Column(String(20), nullable=False, default="pending", index=True)
    period_start = Column(DateTime(timezone=True), nullable=True)
    period_end = Column(DateTime(timezone=True), nullable=True)
    invoice_number = Column(String(64), nullable=True, unique=True)  # Payment reference

    customer_id = Column(String(64), nullable=True)
    customer_email = Column(String(200), nullable=True)
    customer_name = Column(String(200), nullable=True)
    description = Column(Text, nullable=True)
    payment_metadata = Column("metadata", JSON, nullable=True)

    # Manual review
    receipt_url = Column(Text, nullable=True)
    receipt_uploaded_at = Column(DateTime(timezone=True), nullable=True)
    notes = Column(Text, nullable=True)
    admin_notes = Column(Text, nullable=True)
    reviewed_at = Column(DateTime(timezone=True), nullable=True)

    refunded_amount = Column(Numeric(12, 2), nullable=True)
    refund_reason = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), default=_utcnow)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    subscription = relationship("BranchSubscription", back_populates="payments")


class AuditLog(Base):
    """
    Immutable audit trail entry.

    Every published payment event gets an entry. These are append-only and
    never modified.
    """

    __tablename__ = "audit_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    payment_id = Column(String(36), nullable=True, index=True)
    provider = Column(String(20), nullable=True)
    action = Column(String(50), nullable=False)
    details = Column(Text, nullable=True)
    timestamp = Column(DateTime(timezone=True), default=_utcnow)
