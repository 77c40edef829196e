"""
LaundryFlow Payments: Payment Provider Orchestration API.

Creates, confirms, queries, cancels and refunds subscription payments through
interchangeable payment methods (manual bank transfer today, card processing
later) behind one lifecycle and event model.

Start the server:
    uvicorn laundry_payments.main:app --reload
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from sqlalchemy.ext.asyncio import AsyncEngine

from laundry_payments import database
from laundry_payments.api.admin import router as admin_router
from laundry_payments.api.health import router as health_router
from laundry_payments.api.payments import router as payments_router
from laundry_payments.api.providers import router as providers_router
from laundry_payments.audit.logger import AuditTrail
from laundry_payments.config import Settings, settings as default_settings
from laundry_payments.payments.service import PaymentService
from laundry_payments.store.sql import SqlPaymentStore

logging.basicConfig(
    level=getattr(logging, default_settings.log_level.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)


def create_app(engine: Optional[AsyncEngine] = None, settings: Settings = default_settings) -> FastAPI:
    """Build the API. The payment service is created once here and lives as long as the app."""

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        bind = engine or database.engine
        await database.init_db(bind)

        session_factory = database.make_session_factory(bind)
        store = SqlPaymentStore(session_factory)
        service = PaymentService(store, settings=settings)
        await service.initialize()
        service.on_payment_event(AuditTrail(session_factory))

        app.state.payment_store = store
        app.state.payment_service = service
        yield

    app = FastAPI(
        title="LaundryFlow Payments",
        description=(
            "Provider-agnostic payment orchestration for laundry-shop subscriptions. "
            "One lifecycle (pending, processing, completed, failed, cancelled, refunded) "
            "across manual bank transfers and card processing, with lifecycle events "
            "and an immutable audit trail."
        ),
        version="0.1.0",
        lifespan=lifespan,
    )

    app.include_router(health_router)
    app.include_router(providers_router, prefix="/api")
    app.include_router(payments_router, prefix="/api")
    app.include_router(admin_router, prefix="/api")
    return app


app = create_app()
