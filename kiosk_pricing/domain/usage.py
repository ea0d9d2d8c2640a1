"""Wallet limit usage - percentages, colors and dashboard alerts"""

from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List

from kiosk_pricing.domain.models import WalletAlert, WalletUsageSnapshot

# (alert_type, limit attribute, used attribute)
_LIMIT_CHECKS = (
    ("daily_withdrawal", "daily_withdrawal_limit", "daily_withdrawals"),
    ("daily_transfer", "daily_transfer_limit", "daily_transfers"),
    ("monthly_withdrawal", "monthly_withdrawal_limit", "monthly_withdrawals"),
    ("monthly_transfer", "monthly_transfer_limit", "monthly_transfers"),
)


def usage_percent(used: Decimal, limit: Decimal) -> int:
    """Share of a limit consumed, rounded, capped at 100; 0 when there is no limit"""
    if limit <= 0:
        return 0
    percent = (Decimal(used) / Decimal(limit) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP)
    return min(int(percent), 100)


def usage_color(percent: int) -> str:
    if percent < 70:
        return "green"
    if percent < 80:
        return "yellow"
    if percent < 90:
        return "orange"
    return "red"


def wallet_alerts(snapshot: WalletUsageSnapshot, threshold_percent: int = 70) -> List[WalletAlert]:
    """Limits of one wallet whose usage is above threshold_percent"""
    alerts = []
    for alert_type, limit_attr, used_attr in _LIMIT_CHECKS:
        limit = getattr(snapshot, limit_attr)
        used = getattr(snapshot, used_attr)
        percent = usage_percent(used, limit)
        if limit > 0 and percent > threshold_percent:
            alerts.append(
                WalletAlert(
                    wallet_id=snapshot.wallet_id,
                    wallet_name=snapshot.wallet_name,
                    alert_type=alert_type,
                    percentage=percent,
                    used=used,
                    limit=limit,
                    color=usage_color(percent),
                )
            )
    return alerts


def collect_wallet_alerts(snapshots: Iterable[WalletUsageSnapshot], threshold_percent: int = 70) -> List[WalletAlert]:
    alerts = []
    for snapshot in snapshots:
        alerts.extend(wallet_alerts(snapshot, threshold_percent))
    return sorted(alerts, key=lambda a: a.percentage, reverse=True)
