"""Pytest fixtures for testing"""

import json
import pytest
import httpx
from datetime import date
from decimal import Decimal
from typing import Generator, List
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from kiosk_pricing.api.dependencies import get_event_applier, get_notification_client, get_today
from kiosk_pricing.api.main import create_app
from kiosk_pricing.domain.models import DiscountTier
from kiosk_pricing.infrastructure.clients.notifications import NotificationClient
from kiosk_pricing.infrastructure.database.models import Base, CustomerRecord, PricingTierRecord, TransactionRecord
from kiosk_pricing.infrastructure.database.session import engine_options, get_db
from kiosk_pricing.infrastructure.realtime import RealtimeEventApplier


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, **engine_options(TEST_DATABASE_URL))
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

TODAY = date(2024, 3, 15)


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
def sent_notifications() -> List[dict]:
    """Payloads received by the fake notification webhook"""
    return []


@pytest.fixture
def client(db: Session, sent_notifications: List[dict]) -> TestClient:
    """Create FastAPI test client with test database, pinned clock and fake webhook"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    def webhook(request: httpx.Request) -> httpx.Response:
        sent_notifications.append(json.loads(request.content))
        return httpx.Response(200)

    notifier = NotificationClient(
        webhook_url="http://notifications.test/events",
        max_retries=1,
        backoff_base=0,
        transport=httpx.MockTransport(webhook),
    )
    applier = RealtimeEventApplier()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_today] = lambda: TODAY
    app.dependency_overrides[get_notification_client] = lambda: notifier
    app.dependency_overrides[get_event_applier] = lambda: applier
    return TestClient(app)


@pytest.fixture
def tiers() -> list[DiscountTier]:
    """Contiguous tier table: bronze [1000, 10000), silver [10000, 50000), gold [50000, inf)"""
    return [
        DiscountTier(
            id="bronze",
            order=1,
            threshold_from=Decimal("1000"),
            threshold_to=Decimal("10000"),
            transfer_discount_percent=Decimal("10"),
            withdrawal_discount_percent=Decimal("5"),
        ),
        DiscountTier(
            id="silver",
            order=2,
            threshold_from=Decimal("10000"),
            threshold_to=Decimal("50000"),
            transfer_discount_percent=Decimal("20"),
            withdrawal_discount_percent=Decimal("10"),
        ),
        DiscountTier(
            id="gold",
            order=3,
            threshold_from=Decimal("50000"),
            threshold_to=None,
            transfer_discount_percent=Decimal("30"),
            withdrawal_discount_percent=Decimal("15"),
        ),
    ]


@pytest.fixture
def seeded_tiers(db: Session, tiers: list[DiscountTier]) -> list[PricingTierRecord]:
    """Store the tier table in the test database"""
    rows = [
        PricingTierRecord(
            tier_level=t.order,
            min_amount=t.threshold_from,
            max_amount=t.threshold_to,
            transfer_discount_percent=t.transfer_discount_percent,
            withdrawal_discount_percent=t.withdrawal_discount_percent,
            is_active=True,
        )
        for t in tiers
    ]
    db.add_all(rows)
    db.commit()
    return rows


def make_customer(db: Session, **fields) -> CustomerRecord:
    customer = CustomerRecord(**{"balance": Decimal("0"), "loyalty_points": 0, "tier": "normal", **fields})
    db.add(customer)
    db.commit()
    return customer


def add_cash_transaction(
    db: Session,
    customer: CustomerRecord,
    amount: str,
    on: date,
    operation_type: str = "transfer",
    account_type: str = "cash",
) -> TransactionRecord:
    transaction = TransactionRecord(
        customer_id=customer.id,
        date=on,
        account_type=account_type,
        account_id="wallet-1",
        account_name="Vodafone Cash",
        operation_type=operation_type,
        amount=Decimal(amount),
        total_charged=Decimal(amount),
    )
    db.add(transaction)
    db.commit()
    return transaction


@pytest.fixture
def customer_factory(db: Session):
    return lambda **fields: make_customer(db, **fields)


@pytest.fixture
def transaction_factory(db: Session):
    return lambda customer, amount, on, **kw: add_cash_transaction(db, customer, amount, on, **kw)
