"""FastAPI dependencies for the objects built once in the app lifespan."""

from fastapi import Request

from laundry_payments.payments.service import PaymentService
from laundry_payments.store.base import PaymentStore


def get_payment_service(request: Request) -> PaymentService:
    return request.app.state.payment_service


def get_payment_store(request: Request) -> PaymentStore:
    return request.app.state.payment_store
