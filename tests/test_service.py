"""Tests for the payment service orchestrator."""

import json
from dataclasses import replace
from decimal import Decimal

import pytest
from sqlalchemy import select

from laundry_payments.audit.logger import AuditTrail
from laundry_payments.models.enums import PaymentEventType, PaymentProviderType, PaymentStatus
from laundry_payments.models.records import AuditLog, BranchSubscription
from laundry_payments.payments.service import PaymentService
from laundry_payments.payments.types import (
    ConfirmPaymentRequest,
    PaymentInstructions,
    PaymentProviderConfig,
    PaymentResult,
    RefundRequest,
)
from laundry_payments.providers.bank_transfer import BankTransferProvider
from laundry_payments.providers.base import PaymentProvider
from laundry_payments.providers.stripe_provider import StripeProvider


class FakeProvider(PaymentProvider):
    """Always-succeeding provider used to probe registry policy."""

    def __init__(self, provider_type: PaymentProviderType, enabled: bool = True):
        self._type = provider_type
        self._config = PaymentProviderConfig(
            type=provider_type,
            is_enabled=enabled,
            display_name=provider_type.value,
            description="fake",
            supported_currencies=("USD",),
        )
        self._initialized = False
        self.initialize_calls = 0

    @property
    def type(self):
        return self._type

    @property
    def config(self):
        return self._config

    async def initialize(self):
        self.initialize_calls += 1
        self._initialized = True

    def is_available(self):
        return self._initialized and self._config.is_enabled

    async def create_payment(self, request):
        return PaymentResult(success=True, status=PaymentStatus.PENDING, payment_id="fake_1")

    async def confirm_payment(self, request):
        return PaymentResult(success=True, status=PaymentStatus.COMPLETED, payment_id=request.payment_id)

    async def get_payment_status(self, payment_id):
        return PaymentResult(success=True, status=PaymentStatus.COMPLETED, payment_id=payment_id)

    async def cancel_payment(self, payment_id):
        return PaymentResult(success=True, status=PaymentStatus.CANCELLED, payment_id=payment_id)

    async def refund_payment(self, request):
        return PaymentResult(success=True, status=PaymentStatus.REFUNDED, payment_id=request.payment_id)

    def get_payment_instructions(self):
        return PaymentInstructions(title="fake", steps=[])


class TestRegistry:
    @pytest.mark.asyncio
    async def test_default_registry(self, service):
        assert isinstance(service.get_provider(PaymentProviderType.BANK_TRANSFER), BankTransferProvider)
        assert isinstance(service.get_provider(PaymentProviderType.STRIPE), StripeProvider)
        assert service.get_provider(PaymentProviderType.PAYPAL) is None

    @pytest.mark.asyncio
    async def test_available_providers(self, service):
        available = service.get_available_providers()
        assert [p.type for p in available] == [PaymentProviderType.BANK_TRANSFER]

    @pytest.mark.asyncio
    async def test_all_provider_configs_include_disabled(self, service):
        configs = service.get_all_provider_configs()
        assert [c.type for c in configs] == [PaymentProviderType.BANK_TRANSFER, PaymentProviderType.STRIPE]
        assert configs[1].is_enabled is False

    @pytest.mark.asyncio
    async def test_initialize_is_idempotent(self, store):
        fake = FakeProvider(PaymentProviderType.PAYPAL)
        service = PaymentService(store, providers=[fake])

        await service.initialize()
        await service.initialize()

        assert fake.initialize_calls == 1
        assert service.initialized is True

    @pytest.mark.asyncio
    async def test_duplicate_provider_type_rejected(self, store):
        service = PaymentService(store, providers=[
            FakeProvider(PaymentProviderType.PAYPAL),
            FakeProvider(PaymentProviderType.PAYPAL),
        ])
        with pytest.raises(ValueError):
            await service.initialize()


class TestDefaultProvider:
    @pytest.mark.asyncio
    async def test_prefers_bank_transfer(self, service):
        assert service.get_default_provider().type == PaymentProviderType.BANK_TRANSFER

    @pytest.mark.asyncio
    async def test_prefers_bank_transfer_regardless_of_order(self, store):
        service = PaymentService(store, providers=[
            FakeProvider(PaymentProviderType.PAYPAL),
            FakeProvider(PaymentProviderType.STRIPE),
            BankTransferProvider(store),
        ])
        await service.initialize()

        assert service.get_default_provider().type == PaymentProviderType.BANK_TRANSFER

    @pytest.mark.asyncio
    async def test_falls_back_to_first_available(self, store):
        bank = BankTransferProvider(store)
        service = PaymentService(store, providers=[
            FakeProvider(PaymentProviderType.STRIPE, enabled=False),
            bank,
            FakeProvider(PaymentProviderType.PAYPAL),
        ])
        await service.initialize()
        bank.reconfigure(replace(bank.config, is_enabled=False))

        assert service.get_default_provider().type == PaymentProviderType.PAYPAL

    @pytest.mark.asyncio
    async def test_none_available(self, store):
        service = PaymentService(store, providers=[StripeProvider()])
        await service.initialize()

        assert service.get_default_provider() is None


class TestDelegation:
    @pytest.mark.asyncio
    async def test_unknown_provider(self, service, make_request):
        result = await service.create_payment(PaymentProviderType.PAYPAL, make_request())
        assert result.success is False
        assert "paypal" in result.error
        assert "no encontrado" in result.error

        for result in [
            await service.confirm_payment(PaymentProviderType.PAYPAL, ConfirmPaymentRequest(payment_id="p")),
            await service.get_payment_status(PaymentProviderType.PAYPAL, "p"),
            await service.cancel_payment(PaymentProviderType.PAYPAL, "p"),
            await service.refund_payment(PaymentProviderType.PAYPAL, RefundRequest(payment_id="p")),
            await service.approve_payment(PaymentProviderType.PAYPAL, "p"),
        ]:
            assert result.success is False
            assert result.error == "Proveedor no encontrado"

    @pytest.mark.asyncio
    async def test_unknown_provider_given_as_string(self, service, make_request):
        result = await service.create_payment("mercadopago", make_request())
        assert result.success is False
        assert "mercadopago" in result.error

        assert service.get_provider("mercadopago") is None
        assert "paypal" in (await service.create_payment("paypal", make_request())).error
        assert (await service.cancel_payment("mercadopago", "p")).error == "Proveedor no encontrado"
        assert (await service.reject_payment("mercadopago", "p", "x")).error == "Proveedor no encontrado"

    @pytest.mark.asyncio
    async def test_provider_given_as_string_publishes_enum(self, service, session_factory, make_request):
        events = []
        service.on_payment_event(events.append)
        service.on_payment_event(AuditTrail(session_factory))

        created = await service.create_payment("bank_transfer", make_request())

        assert created.success is True
        assert events[0].provider is PaymentProviderType.BANK_TRANSFER
        async with session_factory() as session:
            logs = (await session.execute(
                select(AuditLog).where(AuditLog.payment_id == created.payment_id)
            )).scalars().all()
        assert [log.provider for log in logs] == ["bank_transfer"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("amount", ["NaN", "Infinity"])
    async def test_non_finite_amount_is_a_failed_result(self, service, store, make_request, amount):
        events = []
        service.on_payment_event(events.append)

        result = await service.create_payment(PaymentProviderType.BANK_TRANSFER, make_request(amount=amount))

        assert result.success is False
        assert events == []
        assert await store.find_payments() == []

    @pytest.mark.asyncio
    async def test_non_finite_approved_amount_is_a_failed_result(self, service, store, make_request):
        bank = PaymentProviderType.BANK_TRANSFER
        created = await service.create_payment(bank, make_request())

        result = await service.approve_payment(bank, created.payment_id, approved_amount=Decimal("NaN"))

        assert result.success is False
        assert (await store.get_payment(created.payment_id)).status == "pending"

    @pytest.mark.asyncio
    async def test_disabled_card_provider(self, service, store, make_request):
        events = []
        service.on_payment_event(events.append)

        result = await service.create_payment(PaymentProviderType.STRIPE, make_request(amount="500"))

        assert result.success is False
        assert "no está disponible" in result.error
        assert events == []
        assert await store.find_payments() == []

    @pytest.mark.asyncio
    async def test_disabled_card_provider_other_calls(self, service):
        events = []
        service.on_payment_event(events.append)

        results = [
            await service.confirm_payment(PaymentProviderType.STRIPE, ConfirmPaymentRequest(payment_id="p")),
            await service.get_payment_status(PaymentProviderType.STRIPE, "p"),
            await service.cancel_payment(PaymentProviderType.STRIPE, "p"),
            await service.refund_payment(PaymentProviderType.STRIPE, RefundRequest(payment_id="p")),
        ]

        assert len({r.error for r in results}) == 1
        assert all(not r.success for r in results)
        assert events == []

    @pytest.mark.asyncio
    async def test_card_provider_has_no_manual_review(self, service):
        result = await service.approve_payment(PaymentProviderType.STRIPE, "p")
        assert result.success is False
        assert "aprobación manual" in result.error


class TestLifecycleEvents:
    @pytest.mark.asyncio
    async def test_events_for_each_successful_operation(self, service, make_request):
        events = []
        service.on_payment_event(events.append)
        bank = PaymentProviderType.BANK_TRANSFER

        created = await service.create_payment(bank, make_request())
        await service.confirm_payment(bank, ConfirmPaymentRequest(payment_id=created.payment_id))
        await service.approve_payment(bank, created.payment_id)
        await service.refund_payment(bank, RefundRequest(payment_id=created.payment_id))
        other = await service.create_payment(bank, make_request())
        await service.cancel_payment(bank, other.payment_id)
        await service.get_payment_status(bank, other.payment_id)

        assert [e.type for e in events] == [
            PaymentEventType.CREATED,
            PaymentEventType.CONFIRMED,
            PaymentEventType.APPROVED,
            PaymentEventType.REFUNDED,
            PaymentEventType.CREATED,
            PaymentEventType.CANCELLED,
        ]
        assert all(e.provider == bank for e in events)
        assert events[0].payment_id == created.payment_id
        assert events[0].data is created
        assert events[0].timestamp.tzinfo is not None

    @pytest.mark.asyncio
    async def test_no_events_for_failed_operations(self, service, make_request):
        events = []
        service.on_payment_event(events.append)
        bank = PaymentProviderType.BANK_TRANSFER

        await service.create_payment(bank, make_request(amount="50"))
        created = await service.create_payment(bank, make_request())
        await service.cancel_payment(bank, created.payment_id)
        await service.cancel_payment(bank, created.payment_id)
        await service.refund_payment(bank, RefundRequest(payment_id=created.payment_id))

        assert [e.type for e in events] == [PaymentEventType.CREATED, PaymentEventType.CANCELLED]

    @pytest.mark.asyncio
    async def test_reject_publishes_failed(self, service, make_request):
        events = []
        service.on_payment_event(events.append)
        bank = PaymentProviderType.BANK_TRANSFER

        created = await service.create_payment(bank, make_request())
        result = await service.reject_payment(bank, created.payment_id, "Comprobante ilegible")

        assert result.status == PaymentStatus.FAILED
        assert events[-1].type == PaymentEventType.FAILED

    @pytest.mark.asyncio
    async def test_handler_error_does_not_reach_caller(self, service, store, make_request):
        seen = []

        def broken(event):
            raise RuntimeError("billing reconciliation is down")

        service.on_payment_event(broken)
        service.on_payment_event(lambda e: seen.append(e.type))

        result = await service.create_payment(PaymentProviderType.BANK_TRANSFER, make_request())

        assert result.success is True
        assert seen == [PaymentEventType.CREATED]
        assert len(await store.find_payments()) == 1

    @pytest.mark.asyncio
    async def test_unsubscribe(self, service, make_request):
        seen = []
        unsubscribe = service.on_payment_event(lambda e: seen.append(e.payment_id))
        bank = PaymentProviderType.BANK_TRANSFER

        first = await service.create_payment(bank, make_request())
        unsubscribe()
        await service.create_payment(bank, make_request())

        assert seen == [first.payment_id]


class TestScenarios:
    @pytest.mark.asyncio
    async def test_subscription_payment_end_to_end(self, service, session_factory, make_request,
                                                   past_due_subscription):
        bank = PaymentProviderType.BANK_TRANSFER

        created = await service.create_payment(bank, make_request(amount="500", subscription_id="SUB-003"))
        assert created.status == PaymentStatus.PENDING
        assert created.requires_action is True

        confirmed = await service.confirm_payment(bank, ConfirmPaymentRequest(
            payment_id=created.payment_id,
            receipt_url="https://storage.example.com/receipts/sub-003.jpg",
        ))
        assert confirmed.status == PaymentStatus.PROCESSING

        approved = await service.approve_payment(bank, created.payment_id, approved_amount=Decimal("500"))
        assert approved.status == PaymentStatus.COMPLETED

        status = await service.get_payment_status(bank, created.payment_id)
        assert status.status == PaymentStatus.COMPLETED

        async with session_factory() as session:
            sub = await session.get(BranchSubscription, "SUB-003")
        assert sub.status == "active"

    @pytest.mark.asyncio
    async def test_audit_trail_records_events(self, service, session_factory, make_request):
        service.on_payment_event(AuditTrail(session_factory))
        bank = PaymentProviderType.BANK_TRANSFER

        created = await service.create_payment(bank, make_request())
        await service.cancel_payment(bank, created.payment_id)

        async with session_factory() as session:
            logs = (await session.execute(
                select(AuditLog).where(AuditLog.payment_id == created.payment_id).order_by(AuditLog.id)
            )).scalars().all()

        assert [log.action for log in logs] == ["payment.created", "payment.cancelled"]
        assert all(log.provider == "bank_transfer" for log in logs)
        assert json.loads(logs[0].details)["reference"] == created.provider_reference
        assert json.loads(logs[1].details)["status"] == "cancelled"
