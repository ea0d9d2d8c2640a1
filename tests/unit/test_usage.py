"""Unit tests for wallet limit usage"""

from decimal import Decimal

import pytest

from kiosk_pricing.domain.models import WalletUsageSnapshot
from kiosk_pricing.domain.usage import collect_wallet_alerts, usage_color, usage_percent, wallet_alerts


def test_usage_percent():
    assert usage_percent(Decimal("750"), Decimal("1000")) == 75
    assert usage_percent(Decimal("2.5"), Decimal("1000")) == 0
    assert usage_percent(Decimal("5"), Decimal("1000")) == 1
    assert usage_percent(Decimal("1500"), Decimal("1000")) == 100


def test_usage_percent_without_limit():
    assert usage_percent(Decimal("500"), Decimal("0")) == 0


@pytest.mark.parametrize(
    "percent, color",
    [(0, "green"), (69, "green"), (70, "yellow"), (79, "yellow"), (80, "orange"), (89, "orange"), (90, "red"), (100, "red")],
)
def test_usage_color(percent, color):
    assert usage_color(percent) == color


def test_alerts_above_threshold_only():
    snapshot = WalletUsageSnapshot(
        wallet_id="w-1",
        wallet_name="Vodafone Cash",
        daily_withdrawal_limit=Decimal("1000"),
        daily_withdrawals=Decimal("700"),
        daily_transfer_limit=Decimal("1000"),
        daily_transfers=Decimal("710"),
        monthly_transfer_limit=Decimal("0"),
        monthly_transfers=Decimal("99999"),
    )
    alerts = wallet_alerts(snapshot)

    assert [a.alert_type for a in alerts] == ["daily_transfer"]
    assert alerts[0].percentage == 71
    assert alerts[0].color == "yellow"


def test_collect_alerts_sorted_by_percentage():
    snapshots = [
        WalletUsageSnapshot(
            wallet_id="w-1",
            wallet_name="A",
            daily_withdrawal_limit=Decimal("100"),
            daily_withdrawals=Decimal("75"),
        ),
        WalletUsageSnapshot(
            wallet_id="w-2",
            wallet_name="B",
            monthly_transfer_limit=Decimal("100"),
            monthly_transfers=Decimal("95"),
        ),
    ]
    alerts = collect_wallet_alerts(snapshots)

    assert [(a.wallet_id, a.percentage) for a in alerts] == [("w-2", 95), ("w-1", 75)]
    assert alerts[0].color == "red"
