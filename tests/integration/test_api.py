"""Integration tests for API endpoints"""

import uuid
from datetime import date

import pytest
from fastapi.testclient import TestClient

from kiosk_pricing.infrastructure.database.models import (
    AppSetting,
    RechargeReminderRecord,
    TransactionRecord,
    WalletRecord,
    WalletUsageRecord,
)

pytestmark = pytest.mark.integration

TODAY = date(2024, 3, 15)


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_metrics_endpoint(client: TestClient):
    """Test Prometheus metrics endpoint"""
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "kiosk_quote_total" in response.text


def test_request_id_is_echoed(client: TestClient):
    response = client.get("/health", headers={"X-Request-ID": "req-123"})
    assert response.headers["X-Request-ID"] == "req-123"


class TestQuote:
    def test_default_schedule_without_settings_rows(self, client: TestClient):
        """500 transfer with default fees: 5 service + 1 wallet"""
        response = client.post("/v1/quote", json={"amount": "500", "operation_type": "transfer"})

        assert response.status_code == 200
        breakdown = response.json()["breakdown"]
        assert breakdown["base_service_fees"] == 5
        assert breakdown["final_service_fees"] == 5
        assert breakdown["total_charged"] == 506
        assert breakdown["profit"] == 6
        assert breakdown["tier_id"] is None

    def test_stored_settings_change_the_schedule(self, client: TestClient, db):
        db.add_all([AppSetting(key="service_fee_base", value="3"), AppSetting(key="service_fee_per", value="100")])
        db.commit()

        response = client.post("/v1/quote", json={"amount": "250", "operation_type": "withdrawal", "wallet_fees": "0"})

        assert response.status_code == 200
        assert response.json()["breakdown"]["base_service_fees"] == 9
        assert response.json()["breakdown"]["total_charged"] == 259

    def test_customer_tier_from_trailing_cash_volume(
        self, client: TestClient, seeded_tiers, customer_factory, transaction_factory
    ):
        """Only cash transfers/withdrawals inside the 30-day window count toward the tier"""
        customer = customer_factory(last_transaction_date=date(2024, 3, 10))
        transaction_factory(customer, "12000", date(2024, 3, 10))
        transaction_factory(customer, "50000", date(2024, 1, 1))
        transaction_factory(customer, "40000", date(2024, 3, 12), account_type="machine")
        transaction_factory(customer, "40000", date(2024, 3, 12), operation_type="recharge")

        response = client.post(
            "/v1/quote",
            json={"amount": "1000", "operation_type": "transfer", "customer_id": str(customer.id)},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["monthly_cash_volume"] == 12000
        assert data["breakdown"]["tier_id"] == str(seeded_tiers[1].id)
        assert data["breakdown"]["tier_discount_amount"] == 2
        assert data["breakdown"]["final_service_fees"] == 8
        assert data["breakdown"]["total_charged"] == 1009

    def test_invalid_amount_gives_no_quote(self, client: TestClient):
        response = client.post("/v1/quote", json={"amount": "-1", "operation_type": "transfer"})
        assert response.status_code == 422

    def test_recharge_is_not_quoted(self, client: TestClient):
        response = client.post("/v1/quote", json={"amount": "100", "operation_type": "recharge"})
        assert response.status_code == 422

    def test_misconfigured_settings(self, client: TestClient, db):
        db.add(AppSetting(key="service_fee_per", value="0"))
        db.commit()

        response = client.post("/v1/quote", json={"amount": "500", "operation_type": "transfer"})
        assert response.status_code == 503

    def test_unknown_customer(self, client: TestClient):
        response = client.post(
            "/v1/quote",
            json={"amount": "500", "operation_type": "transfer", "customer_id": str(uuid.uuid4())},
        )
        assert response.status_code == 404

    def test_malformed_customer_id(self, client: TestClient):
        response = client.post(
            "/v1/quote",
            json={"amount": "500", "operation_type": "transfer", "customer_id": "not-a-uuid"},
        )
        assert response.status_code == 400


class TestTransactions:
    def test_cash_transaction_is_priced_server_side(
        self, client: TestClient, db, customer_factory, sent_notifications
    ):
        customer = customer_factory()

        response = client.post(
            "/v1/transactions",
            json={
                "account_id": "wallet-1",
                "account_name": "Vodafone Cash",
                "operation_type": "withdrawal",
                "amount": "1000",
                "customer_id": str(customer.id),
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["service_fees"] == 10
        assert data["total_charged"] == 1011
        assert data["profit"] == 11
        assert data["loyalty_points_earned"] == 2

        stored = db.get(TransactionRecord, uuid.UUID(data["transaction_id"]))
        assert stored.account_type == "cash"
        assert float(stored.total_charged) == 1011

        db.refresh(customer)
        assert customer.loyalty_points == 2
        assert customer.total_transactions_count == 1
        assert customer.last_transaction_date == TODAY

        assert len(sent_notifications) == 1
        assert sent_notifications[0]["event"] == "TRANSACTION_RECORDED"
        assert sent_notifications[0]["transaction_id"] == data["transaction_id"]
        assert "١٬٠١١٫٠٠ ج" in sent_notifications[0]["message"]

    def test_machine_operation_profit_is_commission(self, client: TestClient, sent_notifications):
        response = client.post(
            "/v1/transactions",
            json={
                "account_type": "machine",
                "account_id": "m-1",
                "account_name": "Fawry",
                "operation_type": "recharge",
                "amount": "100",
                "commission": "2.5",
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert data["account_type"] == "machine"
        assert data["profit"] == 2.5
        assert data["total_charged"] == 102.5
        assert data["service_fees"] == 0
        assert sent_notifications == []

    def test_cash_recharge_is_rejected(self, client: TestClient):
        response = client.post(
            "/v1/transactions",
            json={"account_id": "wallet-1", "operation_type": "recharge", "amount": "100"},
        )
        assert response.status_code == 422

    def test_balance_adjustment(self, client: TestClient, db, customer_factory):
        customer = customer_factory(balance=100)

        response = client.post(
            f"/v1/customers/{customer.id}/balance-adjustments",
            json={"amount": "-50", "reason": "تصحيح"},
        )

        assert response.status_code == 200
        assert response.json()["balance"] == 50

        adjustment = db.query(TransactionRecord).filter_by(customer_id=customer.id).one()
        assert adjustment.operation_type == "adjustment"
        assert float(adjustment.amount) == 50
        assert float(adjustment.total_charged) == -50
        assert float(adjustment.profit) == 0

    def test_zero_adjustment_is_rejected(self, client: TestClient, customer_factory):
        customer = customer_factory(balance=100)

        response = client.post(f"/v1/customers/{customer.id}/balance-adjustments", json={"amount": "0"})
        assert response.status_code == 422


class TestCustomerTier:
    def test_active_customer_in_silver_band(
        self, client: TestClient, db, seeded_tiers, customer_factory, transaction_factory
    ):
        customer = customer_factory(last_transaction_date=date(2024, 3, 10), loyalty_points=3)
        transaction_factory(customer, "12000", date(2024, 3, 10))

        response = client.get(f"/v1/customers/{customer.id}/tier")

        assert response.status_code == 200
        data = response.json()
        assert data["activity_tier"] == "active"
        assert data["tier_changed"] is True
        assert data["discount_tier"]["id"] == str(seeded_tiers[1].id)
        assert data["discount_tier"]["name"] == "فضية"
        assert data["window_start"] == "2024-02-15"
        assert data["window_end"] == "2024-03-15"
        assert data["loyalty_points_worth"] == 30
        assert data["last_activity"] == "منذ 5 أيام"
        assert data["balance_display"] == "٠٫٠٠ ج"

        db.refresh(customer)
        assert customer.tier == "active"

    def test_customer_without_transactions_is_inactive(self, client: TestClient, seeded_tiers, customer_factory):
        customer = customer_factory()

        response = client.get(f"/v1/customers/{customer.id}/tier")

        data = response.json()
        assert data["activity_tier"] == "inactive"
        assert data["discount_tier"] is None
        assert data["monthly_cash_volume"] == 0

    def test_malformed_id(self, client: TestClient):
        assert client.get("/v1/customers/not-a-uuid/tier").status_code == 400


class TestServiceRequestEstimate:
    def test_balance_too_low(self, client: TestClient, customer_factory):
        customer = customer_factory(balance=100)

        response = client.post(
            "/v1/service-requests/estimate",
            json={"customer_id": str(customer.id), "request_type": "withdrawal", "amount": "500"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["estimated_fees"] == 6
        assert data["total"] == 506
        assert data["can_afford"] is False

    def test_override_flag_allows_request(self, client: TestClient, customer_factory):
        customer = customer_factory(balance=100, can_request_services=True)

        response = client.post(
            "/v1/service-requests/estimate",
            json={"customer_id": str(customer.id), "request_type": "withdrawal", "amount": "500"},
        )

        assert response.json()["can_afford"] is True


class TestReminders:
    def _create(self, client, customer, **fields):
        body = {
            "customer_id": str(customer.id),
            "phone_number": "01000000000",
            "cycle_type": "monthly",
            "cycle_day_of_month": 1,
            "last_recharge_date": "2024-03-01",
        }
        body.update(fields)
        return client.post("/v1/reminders", json=body)

    def test_create_derives_next_date(self, client: TestClient, db, customer_factory):
        customer = customer_factory()

        response = self._create(client, customer)

        assert response.status_code == 201
        data = response.json()
        assert data["next_recharge_date"] == "2024-04-01"
        assert data["days_remaining"] == 17
        assert data["label_key"] == "upcoming"
        assert db.query(RechargeReminderRecord).count() == 1

    def test_inconsistent_cycle_is_rejected(self, client: TestClient, customer_factory):
        customer = customer_factory()

        response = self._create(client, customer, cycle_day_of_month=None)
        assert response.status_code == 422

    def test_unknown_customer(self, client: TestClient):
        response = client.post(
            "/v1/reminders",
            json={
                "customer_id": str(uuid.uuid4()),
                "phone_number": "01000000000",
                "cycle_type": "days",
                "cycle_days": 10,
                "last_recharge_date": "2024-03-01",
            },
        )
        assert response.status_code == 404

    def test_list_filter_and_dispatch(self, client: TestClient, customer_factory, sent_notifications):
        customer = customer_factory()
        self._create(client, customer)
        self._create(
            client,
            customer,
            cycle_type="days",
            cycle_day_of_month=None,
            cycle_days=5,
            last_recharge_date="2024-03-10",
        )

        listing = client.get("/v1/reminders").json()
        assert [r["next_recharge_date"] for r in listing["reminders"]] == ["2024-03-15", "2024-04-01"]
        assert listing["due_today"] == 1
        assert listing["due_this_week"] == 1

        today_only = client.get("/v1/reminders", params={"filter": "today"}).json()
        assert len(today_only["reminders"]) == 1
        assert today_only["reminders"][0]["label"] == "اليوم"

        response = client.post("/v1/reminders/dispatch")
        assert response.json()["dispatched"] == 1
        assert len(sent_notifications) == 1
        assert sent_notifications[0]["event"] == "RECHARGE_REMINDER"
        assert sent_notifications[0]["next_recharge_date"] == "2024-03-15"


def test_wallet_alerts(client: TestClient, db):
    wallet = WalletRecord(
        name="Vodafone Cash",
        phone="01000000000",
        daily_withdrawal_limit=1000,
        daily_transfer_limit=1000,
        monthly_withdrawal_limit=0,
        monthly_transfer_limit=10000,
    )
    wallet.usage = [
        WalletUsageRecord(date=TODAY, period_type="daily", total_withdrawals=800, total_transfers=100),
        WalletUsageRecord(date=date(2024, 3, 1), period_type="monthly", total_withdrawals=5000, total_transfers=9500),
    ]
    db.add(wallet)
    db.commit()

    response = client.get("/v1/wallets/alerts")

    assert response.status_code == 200
    alerts = response.json()["alerts"]
    assert [(a["alert_type"], a["percentage"], a["color"]) for a in alerts] == [
        ("monthly_transfer", 95, "red"),
        ("daily_withdrawal", 80, "orange"),
    ]


def test_realtime_event_applied_once(client: TestClient, db, customer_factory, transaction_factory):
    customer = customer_factory(last_transaction_date=TODAY)
    transaction_factory(customer, "12000", TODAY)
    event = {
        "event_id": "evt-1",
        "table": "transactions",
        "kind": "INSERT",
        "record": {"customer_id": str(customer.id)},
    }

    first = client.post("/v1/realtime/events", json=event)
    second = client.post("/v1/realtime/events", json=event)

    assert first.json()["applied"] is True
    assert second.json()["applied"] is False

    db.refresh(customer)
    assert customer.tier == "active"
