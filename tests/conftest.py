import os
import sys
from decimal import Decimal
from pathlib import Path

import pytest

# Add the project root to the path so we can import brokerage modules
sys.path.insert(0, str(Path(__file__).parent.parent))

# settings are read at import time
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET", "test-secret-key-for-testing-only")

from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import Session, sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from brokerage.db.base import Base  # noqa: E402
from brokerage.models import SETTLEMENT_CURRENCY  # noqa: E402  ensure models are imported
from brokerage.services.asset_ledger import AssetLedger  # noqa: E402
from brokerage.services.order_lifecycle import OrderLifecycle  # noqa: E402

TEST_DATABASE_URL = "sqlite:///:memory:"

CUSTOMER = "CUST001"
OTHER_CUSTOMER = "CUST002"


@pytest.fixture()
def engine():
    """In-memory database shared by every session of one test."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(bind=engine, autoflush=False, autocommit=False)


@pytest.fixture()
def db_session(session_factory) -> Session:
    """Create a fresh database session for each test."""
    session = session_factory()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def ledger(db_session: Session) -> AssetLedger:
    return AssetLedger(db_session)


@pytest.fixture
def lifecycle(db_session: Session, ledger: AssetLedger) -> OrderLifecycle:
    return OrderLifecycle(db_session, ledger)


@pytest.fixture
def fund(db_session: Session, ledger: AssetLedger):
    """Credit a balance and commit: fund(customer, asset, amount)."""

    def _fund(customer_id: str, asset_name: str, amount) -> None:
        ledger.deposit(customer_id, asset_name, Decimal(str(amount)))
        db_session.commit()

    return _fund


@pytest.fixture
def funded_customer(db_session: Session, ledger: AssetLedger, fund) -> str:
    """CUST001 provisioned with 10000 TRY."""
    ledger.provision(CUSTOMER)
    db_session.commit()
    fund(CUSTOMER, SETTLEMENT_CURRENCY, 10000)
    return CUSTOMER


@pytest.fixture
def balance(db_session: Session):
    """balance(customer, asset) -> (size, usable_size) as stored."""

    def _balance(customer_id: str, asset_name: str):
        db_session.expire_all()
        asset = AssetLedger(db_session).get_balance(customer_id, asset_name)
        return asset.size, asset.usable_size

    return _balance
