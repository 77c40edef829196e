"""Application configuration via environment variables."""

from decimal import Decimal
from typing import Optional

from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    database_url: str = "sqlite+aiosqlite:///./laundry_payments.db"
    log_level: str = "INFO"

    # Bank transfer (manual, receipt-confirmed)
    bank_transfer_enabled: bool = True
    bank_transfer_min_amount: Decimal = Decimal("100")  # 100 DOP minimum
    bank_transfer_max_amount: Optional[Decimal] = None
    bank_transfer_currencies: list[str] = ["DOP", "USD"]
    payments_contact_email: str = "pagos@laundryflow.com"
    payments_contact_phone: str = "+1 809 555 1234"

    # Card processing (not available in the current market)
    stripe_enabled: bool = False
    stripe_test_mode: bool = True

    subscription_period_days: int = 30  # Fallback period when a payment carries none

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}


settings = Settings()
