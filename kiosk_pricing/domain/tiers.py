"""Discount tier resolution and customer activity classification"""

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Iterable, List, Optional

from kiosk_pricing.domain.models import CustomerTier, DiscountTier, PricingSettings
from kiosk_pricing.domain.money import to_decimal


@dataclass
class TierMatch:
    """Outcome of a band lookup; warning is set when the tier table is inconsistent"""

    tier: Optional[DiscountTier]
    warning: Optional[str] = None
    warning_kind: Optional[str] = None  # overlap | gap


def _active_sorted(tiers: Iterable[DiscountTier]) -> List[DiscountTier]:
    return sorted((t for t in tiers if t.is_active), key=lambda t: (t.order, t.threshold_from))


def match_discount_tier(volume: Decimal, tiers: Iterable[DiscountTier]) -> TierMatch:
    """
    Find the active tier whose [threshold_from, threshold_to) band contains volume.

    Bad tier tables are an admin data-entry problem, not a reason to fail a quote:
    - several bands match: the lowest order wins
    - volume falls into a gap: the nearest band below it applies
    - volume below every band: no tier
    """
    volume = to_decimal(volume)
    candidates = _active_sorted(tiers)
    if volume is None or volume < 0 or not candidates:
        return TierMatch(tier=None)

    matches = [t for t in candidates if t.contains(volume)]
    if len(matches) == 1:
        return TierMatch(tier=matches[0])
    if matches:
        chosen = matches[0]
        others = ", ".join(t.id for t in matches[1:])
        return TierMatch(
            tier=chosen,
            warning=f"Overlapping discount tiers for volume {volume}: using {chosen.id}, ignoring {others}",
            warning_kind="overlap",
        )

    below = [t for t in candidates if t.threshold_to is not None and t.threshold_to <= volume]
    if not below:
        return TierMatch(tier=None)

    nearest = max(below, key=lambda t: (t.threshold_to, -t.order))
    return TierMatch(
        tier=nearest,
        warning=f"No discount tier covers volume {volume}: falling back to {nearest.id}",
        warning_kind="gap",
    )


def validate_tier_bands(tiers: Iterable[DiscountTier]) -> List[str]:
    """List the gaps, overlaps and ordering problems of the active tier table"""
    problems = []
    ordered = _active_sorted(tiers)

    for previous, current in zip(ordered, ordered[1:]):
        if current.threshold_from < previous.threshold_from:
            problems.append(f"Tier {current.id} starts below tier {previous.id} despite a higher order")
        if previous.threshold_to is None:
            problems.append(f"Tier {previous.id} is open-ended but tier {current.id} follows it")
        elif previous.threshold_to < current.threshold_from:
            problems.append(
                f"Gap between tier {previous.id} and tier {current.id}: "
                f"[{previous.threshold_to}, {current.threshold_from})"
            )
        elif previous.threshold_to > current.threshold_from:
            problems.append(f"Tier {previous.id} overlaps tier {current.id}")

    return problems


def classify_customer(
    volume: Decimal,
    last_transaction_date: Optional[date],
    pricing: PricingSettings,
    today: date,
) -> CustomerTier:
    """
    Customer activity label.

    Precedence:
    - vip if volume >= vip_threshold, else active if >= active_threshold, else normal
    - inactive overrides all of these when there was no transaction within
      inactive_days (a customer with no transactions at all is inactive)
    """
    volume = to_decimal(volume) or Decimal("0")

    if volume >= pricing.vip_threshold:
        label = CustomerTier.VIP
    elif volume >= pricing.active_threshold:
        label = CustomerTier.ACTIVE
    else:
        label = CustomerTier.NORMAL

    if last_transaction_date is None or (today - last_transaction_date).days > pricing.inactive_days:
        return CustomerTier.INACTIVE
    return label
