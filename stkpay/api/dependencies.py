"""
Request-scoped dependencies for the payment endpoints
"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from stkpay.core.transactions.store import TransactionStore
from stkpay.infrastructure.database import get_db
from stkpay.integrations.gateway.base import PaymentGateway
from stkpay.services.payment_service import PaymentLifecycleManager


def get_gateway(request: Request) -> PaymentGateway:
    """Gateway client opened by the application lifespan"""
    gateway = getattr(request.app.state, "gateway", None)
    if gateway is None:
        raise RuntimeError("Payment gateway is not initialised; is the application lifespan running?")
    return gateway


def get_lifecycle_manager(
    gateway: PaymentGateway = Depends(get_gateway),
    db: Session = Depends(get_db),
) -> PaymentLifecycleManager:
    return PaymentLifecycleManager(gateway=gateway, store=TransactionStore(db))
