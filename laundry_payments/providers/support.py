"""
Shared scaffolding for payment providers.

ProviderSupport is composed into each concrete provider rather than
inherited: it tracks initialization, validates amounts against the
provider's configured bounds, and mints human-readable payment references.
"""

import logging
import secrets
import string
import time
from decimal import Decimal
from typing import Optional

from laundry_payments.payments.types import PaymentProviderConfig, PaymentResult

logger = logging.getLogger("laundry_payments.providers")

_BASE36 = string.digits + string.ascii_lowercase


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36[rem])
    return "".join(reversed(digits))


class ProviderSupport:
    """Initialization bookkeeping, amount validation and reference generation."""

    def __init__(self, config: PaymentProviderConfig):
        self._config = config
        self._initialized = False

    @property
    def config(self) -> PaymentProviderConfig:
        return self._config

    @property
    def initialized(self) -> bool:
        return self._initialized

    def mark_initialized(self) -> bool:
        """Flag the provider ready. Returns False if it already was."""
        if self._initialized:
            return False
        self._initialized = True
        logger.info("Payment provider %s initialized", self._config.type.value)
        return True

    def reconfigure(self, config: PaymentProviderConfig) -> None:
        """Swap in a new static config. Availability follows immediately."""
        if config.type != self._config.type:
            raise ValueError(f"Config for {config.type.value} cannot be applied to {self._config.type.value}")
        self._config = config

    def is_available(self) -> bool:
        return self._initialized and self._config.is_enabled

    def validate_amount(self, amount: Decimal, currency: str) -> Optional[str]:
        """
        Check an amount against the provider's limits.

        Returns:
            A user-facing error message, or None if the amount is acceptable.
        """
        config = self._config

        if currency not in config.supported_currencies:
            return f"La moneda {currency} no es soportada por {config.display_name}"

        if not amount.is_finite():
            return "El monto no es válido"

        if amount <= 0:
            return "El monto debe ser mayor que cero"

        if config.min_amount is not None and amount < config.min_amount:
            return f"El monto mínimo es {config.min_amount} {currency}"

        if config.max_amount is not None and amount > config.max_amount:
            return f"El monto máximo es {config.max_amount} {currency}"

        return None

    def generate_payment_reference(self) -> str:
        """
        Mint a unique, human-correlatable reference.

        Format: <TYPE>-<millis in base36>-<6 random base36 chars>, upper-cased,
        e.g. BANK_TRANSFER-LZ8K2Q1C-4F9XQA.
        """
        timestamp = _to_base36(int(time.time() * 1000))
        random_part = "".join(secrets.choice(_BASE36) for _ in range(6))
        return f"{self._config.type.value}-{timestamp}-{random_part}".upper()

    @staticmethod
    def failure(error: str) -> PaymentResult:
        return PaymentResult.failure(error)
