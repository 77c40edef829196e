"""
Bank transfer payment provider.

Manual, human-reconciled flow:
  1. create_payment   - record is pending; payer gets our bank accounts and a reference
  2. confirm_payment  - payer uploads a receipt; record moves to processing
  3. approve_payment  - an operator verifies the deposit; record is completed and
                        the subscription it pays for is re-activated
  4. refund_payment   - optional, operator-initiated, only from completed

A pending payment may be cancelled; a pending/processing one may be rejected
on review (failed). Every transition is a status-conditioned update, so a
call from the wrong state matches no row and comes back as a failed result.
"""

import logging
from dataclasses import asdict
from datetime import datetime, timedelta, timezone
from decimal import Decimal, InvalidOperation
from typing import Optional

from laundry_payments.audit.logger import append_note
from laundry_payments.config import Settings, settings as default_settings
from laundry_payments.models.enums import ActionType, PaymentProviderType, PaymentStatus
from laundry_payments.models.records import SubscriptionPayment
from laundry_payments.payments.types import (
    BankAccountInfo,
    ConfirmPaymentRequest,
    CreatePaymentRequest,
    PaymentInstructions,
    PaymentProviderConfig,
    PaymentResult,
    RefundRequest,
)
from laundry_payments.providers.base import PaymentProvider
from laundry_payments.providers.support import ProviderSupport
from laundry_payments.store.base import PaymentStore, StoreError

logger = logging.getLogger("laundry_payments.providers.bank_transfer")

METHOD = PaymentProviderType.BANK_TRANSFER.value

REVIEWABLE = (PaymentStatus.PENDING.value, PaymentStatus.PROCESSING.value)

DEFAULT_BANK_ACCOUNTS = (
    BankAccountInfo(
        bank_name="Banco Popular Dominicano",
        account_number="123-456789-0",
        account_type="Cuenta Corriente",
        account_holder="LaundryFlow Pro SRL",
        rnc="1-23-45678-9",
    ),
    BankAccountInfo(
        bank_name="Banreservas",
        account_number="987-654321-0",
        account_type="Cuenta de Ahorros",
        account_holder="LaundryFlow Pro SRL",
        rnc="1-23-45678-9",
    ),
)


def bank_transfer_config(settings: Settings = default_settings) -> PaymentProviderConfig:
    return PaymentProviderConfig(
        type=PaymentProviderType.BANK_TRANSFER,
        is_enabled=settings.bank_transfer_enabled,
        display_name="Transferencia Bancaria",
        description="Pago mediante transferencia o depósito bancario",
        instructions="Realiza la transferencia y envía el comprobante para confirmar tu pago.",
        supported_currencies=tuple(settings.bank_transfer_currencies),
        min_amount=settings.bank_transfer_min_amount,
        max_amount=settings.bank_transfer_max_amount,
    )


def _parse_period(value: Optional[str]) -> Optional[datetime]:
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class BankTransferProvider(PaymentProvider):
    """Manual bank transfer with receipt upload and operator approval."""

    def __init__(
        self,
        store: PaymentStore,
        config: Optional[PaymentProviderConfig] = None,
        bank_accounts: Optional[tuple[BankAccountInfo, ...]] = None,
        settings: Settings = default_settings,
    ):
        self._store = store
        self._support = ProviderSupport(config or bank_transfer_config(settings))
        self._bank_accounts = list(bank_accounts or DEFAULT_BANK_ACCOUNTS)
        self._settings = settings

    @property
    def type(self) -> PaymentProviderType:
        return PaymentProviderType.BANK_TRANSFER

    @property
    def config(self) -> PaymentProviderConfig:
        return self._support.config

    def reconfigure(self, config: PaymentProviderConfig) -> None:
        self._support.reconfigure(config)

    async def initialize(self) -> None:
        self._support.mark_initialized()

    def is_available(self) -> bool:
        return self._support.is_available()

    def _unavailable(self) -> PaymentResult:
        return self._support.failure(f"Proveedor de pago '{self.config.display_name}' no está disponible")

    async def create_payment(self, request: CreatePaymentRequest) -> PaymentResult:
        if not self.is_available():
            return self._unavailable()

        validation_error = self._support.validate_amount(request.amount.amount, request.amount.currency)
        if validation_error:
            return self._support.failure(validation_error)

        metadata = request.metadata
        try:
            period_start = _parse_period(metadata.period_start if metadata else None)
            period_end = _parse_period(metadata.period_end if metadata else None)
        except ValueError:
            return self._support.failure("El periodo de facturación no es válido")

        reference = self._support.generate_payment_reference()

        try:
            record = await self._store.insert_payment({
                "subscription_id": metadata.subscription_id if metadata else None,
                "branch_id": metadata.branch_id if metadata else None,
                "amount": request.amount.amount,
                "currency": request.amount.currency,
                "payment_method": METHOD,
                "status": PaymentStatus.PENDING.value,
                "period_start": period_start,
                "period_end": period_end,
                "invoice_number": reference,
                "customer_id": request.customer.id,
                "customer_email": request.customer.email,
                "customer_name": request.customer.name,
                "description": request.description,
                "payment_metadata": metadata.to_dict() if metadata else None,
            })
        except StoreError:
            logger.exception("Error creating bank transfer payment %s", reference)
            return self._support.failure("No se pudo crear el registro de pago")

        logger.info(
            "Bank transfer %s created: %s %s (reference %s)",
            record.id,
            request.amount.currency,
            request.amount.amount,
            reference,
        )

        return PaymentResult(
            success=True,
            payment_id=record.id,
            status=PaymentStatus.PENDING,
            provider_reference=reference,
            requires_action=True,
            action_type=ActionType.UPLOAD_RECEIPT,
            action_data={
                "bank_accounts": [asdict(account) for account in self._bank_accounts],
                "reference": reference,
                "amount": request.amount.amount,
                "currency": request.amount.currency,
            },
        )

    async def confirm_payment(self, request: ConfirmPaymentRequest) -> PaymentResult:
        """Record the uploaded receipt; the payment then awaits operator review."""
        if not self.is_available():
            return self._unavailable()

        values = {"status": PaymentStatus.PROCESSING.value}
        if request.receipt_url:
            values["receipt_url"] = request.receipt_url
            values["receipt_uploaded_at"] = datetime.now(timezone.utc)

        try:
            if request.notes:
                current = await self._store.get_payment(request.payment_id, payment_method=METHOD)
                if current is None:
                    return self._support.failure("Pago no encontrado")
                values["notes"] = append_note(current.notes, request.notes)

            record = await self._store.update_payment(
                request.payment_id,
                values,
                payment_method=METHOD,
                expected_statuses=REVIEWABLE,
            )
        except StoreError:
            logger.exception("Error confirming payment %s", request.payment_id)
            return self._support.failure("Error al confirmar el pago")

        if record is None:
            return self._support.failure("No se pudo confirmar el pago")

        return PaymentResult(
            success=True,
            payment_id=record.id,
            status=PaymentStatus.PROCESSING,
            provider_reference=record.invoice_number,
        )

    async def get_payment_status(self, payment_id: str) -> PaymentResult:
        if not self.is_available():
            return self._unavailable()

        try:
            record = await self._store.get_payment(payment_id, payment_method=METHOD)
        except StoreError:
            logger.exception("Error reading payment %s", payment_id)
            return self._support.failure("Error al obtener estado del pago")

        if record is None:
            return self._support.failure("Pago no encontrado")

        return PaymentResult(
            success=True,
            payment_id=record.id,
            status=PaymentStatus(record.status),
            provider_reference=record.invoice_number,
        )

    async def cancel_payment(self, payment_id: str) -> PaymentResult:
        if not self.is_available():
            return self._unavailable()

        try:
            record = await self._store.update_payment(
                payment_id,
                {"status": PaymentStatus.CANCELLED.value},
                payment_method=METHOD,
                expected_statuses=(PaymentStatus.PENDING.value,),
            )
        except StoreError:
            logger.exception("Error cancelling payment %s", payment_id)
            return self._support.failure("Error al cancelar el pago")

        if record is None:
            return self._support.failure("No se pudo cancelar el pago")

        return PaymentResult(success=True, payment_id=record.id, status=PaymentStatus.CANCELLED)

    async def refund_payment(self, request: RefundRequest) -> PaymentResult:
        """
        Mark a completed payment refunded.

        The money itself goes back by a manual transfer. A partial refund
        records the refunded amount; the record still ends in refunded.
        """
        if not self.is_available():
            return self._unavailable()

        try:
            current = await self._store.get_payment(request.payment_id, payment_method=METHOD)
        except StoreError:
            logger.exception("Error reading payment %s for refund", request.payment_id)
            return self._support.failure("Error al procesar reembolso")

        if current is None:
            return self._support.failure("Pago no encontrado")

        paid = Decimal(current.amount)
        refund_amount = paid
        if request.amount is not None:
            if request.amount.currency != current.currency:
                return self._support.failure(
                    f"El reembolso debe hacerse en {current.currency}"
                )
            requested = request.amount.amount
            if not requested.is_finite() or requested <= 0 or requested > paid:
                return self._support.failure(
                    f"El monto del reembolso debe estar entre 0 y {paid} {current.currency}"
                )
            refund_amount = requested

        values = {"status": PaymentStatus.REFUNDED.value, "refunded_amount": refund_amount}
        if request.reason:
            values["refund_reason"] = request.reason

        try:
            record = await self._store.update_payment(
                request.payment_id,
                values,
                payment_method=METHOD,
                expected_statuses=(PaymentStatus.COMPLETED.value,),
            )
        except StoreError:
            logger.exception("Error refunding payment %s", request.payment_id)
            return self._support.failure("Error al procesar reembolso")

        if record is None:
            return self._support.failure("No se pudo procesar el reembolso")

        logger.info("Payment %s refunded: %s of %s %s", record.id, refund_amount, paid, record.currency)
        return PaymentResult(
            success=True,
            payment_id=record.id,
            status=PaymentStatus.REFUNDED,
            provider_reference=record.invoice_number,
        )

    def get_payment_instructions(self) -> PaymentInstructions:
        return PaymentInstructions(
            title="Instrucciones de Pago por Transferencia",
            steps=[
                "Selecciona una de las cuentas bancarias disponibles",
                "Realiza la transferencia o depósito por el monto indicado",
                "Incluye tu número de referencia en la descripción de la transferencia",
                "Toma una foto o captura del comprobante de pago",
                "Envía el comprobante al correo indicado o súbelo en el sistema",
                "Tu pago será verificado en un plazo de 24-48 horas hábiles",
            ],
            bank_accounts=list(self._bank_accounts),
            contact_email=self._settings.payments_contact_email,
            contact_phone=self._settings.payments_contact_phone,
            notes=[
                "Los pagos se procesan en días hábiles de 9:00 AM a 5:00 PM",
                "Guarda tu comprobante hasta que el pago sea confirmado",
                "Para montos mayores a $5,000 USD, contacta a soporte",
            ],
        )

    def get_bank_accounts(self) -> list[BankAccountInfo]:
        return list(self._bank_accounts)

    # --- Operator review (not part of the generic provider contract) ---

    async def approve_payment(
        self,
        payment_id: str,
        admin_notes: Optional[str] = None,
        approved_amount: Optional[Decimal] = None,
    ) -> PaymentResult:
        """
        Approve a pending or processing payment after verifying the deposit.

        Side effect owned by this provider: if the payment references a
        subscription, that subscription becomes active for the payment's
        billing period (or the next subscription_period_days when the
        payment carries none) and any past-due marker is cleared.
        """
        if not self.is_available():
            return self._unavailable()

        values = {
            "status": PaymentStatus.COMPLETED.value,
            "reviewed_at": datetime.now(timezone.utc),
        }
        if admin_notes:
            values["admin_notes"] = admin_notes
        if approved_amount is not None:
            try:
                approved = Decimal(str(approved_amount))
            except InvalidOperation:
                return self._support.failure("Ingresa un monto válido")
            if not approved.is_finite() or approved <= 0:
                return self._support.failure("Ingresa un monto válido")
            values["amount"] = approved

        try:
            record = await self._store.update_payment(
                payment_id,
                values,
                payment_method=METHOD,
                expected_statuses=REVIEWABLE,
            )
        except StoreError:
            logger.exception("Error approving payment %s", payment_id)
            return self._support.failure("Error al aprobar el pago")

        if record is None:
            return self._support.failure("No se pudo aprobar el pago")

        if record.subscription_id:
            await self._activate_subscription(record)

        logger.info("Payment %s approved", record.id)
        return PaymentResult(
            success=True,
            payment_id=record.id,
            status=PaymentStatus.COMPLETED,
            provider_reference=record.invoice_number,
        )

    async def reject_payment(self, payment_id: str, admin_notes: str) -> PaymentResult:
        """Reject a payment on review (e.g. the receipt does not match a deposit)."""
        if not self.is_available():
            return self._unavailable()

        if not admin_notes or not admin_notes.strip():
            return self._support.failure("Por favor indica el motivo del rechazo")

        try:
            record = await self._store.update_payment(
                payment_id,
                {
                    "status": PaymentStatus.FAILED.value,
                    "admin_notes": admin_notes,
                    "reviewed_at": datetime.now(timezone.utc),
                },
                payment_method=METHOD,
                expected_statuses=REVIEWABLE,
            )
        except StoreError:
            logger.exception("Error rejecting payment %s", payment_id)
            return self._support.failure("Error al rechazar el pago")

        if record is None:
            return self._support.failure("No se pudo rechazar el pago")

        logger.info("Payment %s rejected: %s", record.id, admin_notes)
        # The operation succeeded; the payment itself ended in failed.
        return PaymentResult(
            success=True,
            payment_id=record.id,
            status=PaymentStatus.FAILED,
            provider_reference=record.invoice_number,
        )

    async def _activate_subscription(self, record: SubscriptionPayment) -> None:
        period_start = record.period_start
        period_end = record.period_end
        if period_start is None or period_end is None:
            period_start = datetime.now(timezone.utc)
            period_end = period_start + timedelta(days=self._settings.subscription_period_days)

        try:
            await self._store.activate_subscription(record.subscription_id, period_start, period_end)
        except StoreError:
            # The payment is already completed; the subscription can be fixed by hand.
            logger.exception(
                "Payment %s approved but subscription %s was not activated",
                record.id,
                record.subscription_id,
            )
