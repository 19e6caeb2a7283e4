"""Pytest fixtures for testing"""

import pytest
from datetime import datetime, timedelta
from typing import Callable, Generator, List, Optional
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from spendsense.api.main import create_app
from spendsense.infrastructure.database.models import Base
from spendsense.infrastructure.database.session import get_db
from spendsense.domain.models import Account, Liability, Transaction


# Test database: one shared in-memory connection
TEST_DATABASE_URL = "sqlite://"
engine = create_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

# Fixed evaluation time so windowed computations are reproducible
AS_OF = datetime(2025, 6, 30, 12, 0, 0)


class InMemoryDataSource:
    """FinancialDataSource over plain lists"""

    def __init__(
        self,
        transactions: Optional[List[Transaction]] = None,
        accounts: Optional[List[Account]] = None,
        liabilities: Optional[List[Liability]] = None,
    ):
        self.transactions = transactions or []
        self.accounts = accounts or []
        self.liabilities = liabilities or []

    def get_transactions(self, user_id: str, since: Optional[datetime] = None) -> List[Transaction]:
        return [
            t for t in self.transactions
            if t.user_id == user_id and (since is None or t.date >= since)
        ]

    def get_accounts(self, user_id: str) -> List[Account]:
        return [a for a in self.accounts if a.user_id == user_id]

    def get_liabilities(self, user_id: str) -> List[Liability]:
        return [l for l in self.liabilities if l.user_id == user_id]


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


@pytest.fixture
def as_of() -> datetime:
    return AS_OF


@pytest.fixture
def make_txn() -> Callable[..., Transaction]:
    """Factory for transactions dated `days_ago` days before AS_OF"""

    def _make(
        days_ago: float,
        amount: float,
        merchant: Optional[str] = "Store",
        pfc_primary: str = "other",
        account_id: str = "chk_1",
        merchant_entity_id: Optional[str] = None,
        user_id: str = "user_1",
    ) -> Transaction:
        return Transaction(
            user_id=user_id,
            account_id=account_id,
            date=AS_OF - timedelta(days=days_ago),
            amount=amount,
            merchant=merchant,
            merchant_entity_id=merchant_entity_id,
            pfc_primary=pfc_primary,
        )

    return _make


@pytest.fixture
def data_source() -> Callable[..., InMemoryDataSource]:
    """Factory for in-memory data sources"""
    return InMemoryDataSource
