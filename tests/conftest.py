"""
Pytest configuration and fixtures
"""

import pytest
import os
from decimal import Decimal
from typing import List, Optional, Tuple
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

# Set test environment variables before importing the app
os.environ["ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["LOG_LEVEL"] = "DEBUG"
os.environ["GATEWAY_MODE"] = "mock"
os.environ["METRICS_PUBLIC"] = "false"
os.environ["METRICS_TOKEN"] = "test-metrics-token"

from stkpay.infrastructure.database import Base, Database
from stkpay.infrastructure.settings import get_settings
from stkpay.core.transactions.store import TransactionStore
from stkpay.integrations.gateway.base import GatewayPushResult, PaymentGateway
from stkpay.services.payment_service import PaymentLifecycleManager
from stkpay.main import create_app


class StubGateway(PaymentGateway):
    """
    Scriptable gateway: returns ``next_result`` (default: accepted as TXN123)
    or raises ``error`` when set. Every call is recorded in ``calls``.
    """

    def __init__(self):
        self.next_result: Optional[GatewayPushResult] = None
        self.error: Optional[Exception] = None
        self.calls: List[Tuple[str, Decimal]] = []
        self.closed = False

    async def initiate_stk_push(self, phone: str, amount: Decimal) -> GatewayPushResult:
        self.calls.append((phone, amount))
        if self.error is not None:
            raise self.error
        if self.next_result is not None:
            return self.next_result
        return GatewayPushResult(transaction_id="TXN123", message="STK push sent", status_code=200)

    async def aclose(self) -> None:
        self.closed = True


@pytest.fixture(scope="function")
def database() -> Database:
    """
    Fresh in-memory SQLite database per test (StaticPool: one shared connection).
    """
    database = Database.from_url("sqlite://")
    database.create_all()
    try:
        yield database
    finally:
        database.dispose()


@pytest.fixture(scope="function")
def db_session(database: Database) -> Session:
    db = database.session()
    try:
        yield db
    finally:
        db.close()


@pytest.fixture
def store(db_session: Session) -> TransactionStore:
    return TransactionStore(db_session)


@pytest.fixture
def gateway() -> StubGateway:
    return StubGateway()


@pytest.fixture
def manager(gateway: StubGateway, store: TransactionStore) -> PaymentLifecycleManager:
    return PaymentLifecycleManager(gateway=gateway, store=store)


@pytest.fixture(scope="function")
def client(database: Database, gateway: StubGateway):
    """
    FastAPI test client wired to the test database and the stub gateway.
    Entering the client runs the application lifespan.
    """
    app = create_app(get_settings(), database=database, gateway=gateway)
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def drop_tables(database: Database):
    """Make every store operation fail by removing the schema"""
    def _drop():
        Base.metadata.drop_all(bind=database.engine)
    return _drop


