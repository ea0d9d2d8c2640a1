"""Unit tests for discount tier resolution and customer classification"""

from datetime import date, timedelta
from decimal import Decimal

import pytest

from kiosk_pricing.domain.exceptions import InvalidTierError
from kiosk_pricing.domain.models import CustomerTier, DiscountTier, PricingSettings
from kiosk_pricing.domain.tiers import (
    classify_customer,
    match_discount_tier,
    validate_tier_bands,
)


def _tier(id, order, low, high, transfer="10", withdrawal="5", **kw):
    return DiscountTier(
        id=id,
        order=order,
        threshold_from=Decimal(low),
        threshold_to=None if high is None else Decimal(high),
        transfer_discount_percent=Decimal(transfer),
        withdrawal_discount_percent=Decimal(withdrawal),
        **kw,
    )


class TestMatchDiscountTier:
    def test_volume_inside_band(self, tiers):
        match = match_discount_tier(Decimal("12000"), tiers)

        assert match.tier.id == "silver"
        assert match.warning is None

    def test_band_lower_bound_inclusive_upper_exclusive(self, tiers):
        assert match_discount_tier(Decimal("10000"), tiers).tier.id == "silver"
        assert match_discount_tier(Decimal("9999.99"), tiers).tier.id == "bronze"
        assert match_discount_tier(Decimal("50000"), tiers).tier.id == "gold"

    def test_open_ended_top_band(self, tiers):
        assert match_discount_tier(Decimal("10000000"), tiers).tier.id == "gold"

    def test_below_every_band(self, tiers):
        match = match_discount_tier(Decimal("999.99"), tiers)

        assert match.tier is None
        assert match.warning is None

    def test_no_tiers(self):
        assert match_discount_tier(Decimal("5000"), []).tier is None

    def test_inactive_tiers_are_ignored(self, tiers):
        tiers[1].is_active = False
        match = match_discount_tier(Decimal("12000"), tiers)

        # silver is off, so 12000 sits in a gap above bronze
        assert match.tier.id == "bronze"
        assert match.warning_kind == "gap"

    def test_overlap_picks_lowest_order(self):
        tiers = [_tier("b", 2, "5000", "20000"), _tier("a", 1, "1000", "10000")]
        match = match_discount_tier(Decimal("7000"), tiers)

        assert match.tier.id == "a"
        assert match.warning_kind == "overlap"
        assert "b" in match.warning

    def test_gap_falls_back_to_nearest_lower_band(self):
        tiers = [
            _tier("low", 1, "0", "1000"),
            _tier("mid", 2, "1000", "5000"),
            _tier("high", 3, "8000", None),
        ]
        match = match_discount_tier(Decimal("6000"), tiers)

        assert match.tier.id == "mid"
        assert match.warning_kind == "gap"

    @pytest.mark.parametrize("volume", [None, "abc", "-1"])
    def test_unusable_volume(self, tiers, volume):
        assert match_discount_tier(volume, tiers).tier is None


def test_validate_clean_table(tiers):
    assert validate_tier_bands(tiers) == []


def test_validate_reports_gap_and_overlap():
    problems = validate_tier_bands(
        [
            _tier("a", 1, "0", "1000"),
            _tier("b", 2, "2000", "6000"),
            _tier("c", 3, "5000", None),
        ]
    )

    assert any("Gap between tier a and tier b" in p for p in problems)
    assert any("Tier b overlaps tier c" in p for p in problems)


def test_validate_reports_open_ended_band_not_last():
    problems = validate_tier_bands([_tier("a", 1, "0", None), _tier("b", 2, "1000", "5000")])

    assert any("open-ended" in p for p in problems)


class TestDiscountTierDefinition:
    def test_default_name_and_icon_from_order(self):
        tier = _tier("x", 3, "0", None)

        assert tier.name == "ذهبية"
        assert tier.icon == "🥇"

    def test_unknown_order_gets_placeholder_name(self):
        tier = _tier("x", 9, "0", None)

        assert tier.name == "غير محدد"
        assert tier.icon == "⭐"

    def test_explicit_name_is_kept(self):
        assert _tier("x", 1, "0", None, name="Starter").name == "Starter"

    def test_upper_bound_must_exceed_lower(self):
        with pytest.raises(InvalidTierError):
            _tier("x", 1, "1000", "1000")

    def test_percent_out_of_range(self):
        with pytest.raises(InvalidTierError):
            _tier("x", 1, "0", None, transfer="101")

    def test_negative_threshold(self):
        with pytest.raises(InvalidTierError):
            _tier("x", 1, "-5", None)


class TestClassifyCustomer:
    today = date(2024, 3, 15)
    pricing = PricingSettings()

    def test_vip(self):
        label = classify_customer(Decimal("50000"), self.today, self.pricing, self.today)
        assert label == CustomerTier.VIP

    def test_active(self):
        label = classify_customer(Decimal("10000"), self.today - timedelta(days=3), self.pricing, self.today)
        assert label == CustomerTier.ACTIVE

    def test_normal(self):
        label = classify_customer(Decimal("9999.99"), self.today, self.pricing, self.today)
        assert label == CustomerTier.NORMAL

    def test_inactive_overrides_volume(self):
        last = self.today - timedelta(days=31)
        assert classify_customer(Decimal("80000"), last, self.pricing, self.today) == CustomerTier.INACTIVE

    def test_exactly_inactive_days_is_still_active(self):
        last = self.today - timedelta(days=30)
        assert classify_customer(Decimal("0"), last, self.pricing, self.today) == CustomerTier.NORMAL

    def test_no_transactions_is_inactive(self):
        assert classify_customer(Decimal("0"), None, self.pricing, self.today) == CustomerTier.INACTIVE

    def test_custom_thresholds(self):
        pricing = PricingSettings(vip_threshold=2000, active_threshold=1000, inactive_days=7)

        assert classify_customer(Decimal("1500"), self.today, pricing, self.today) == CustomerTier.ACTIVE
        last = self.today - timedelta(days=8)
        assert classify_customer(Decimal("1500"), last, pricing, self.today) == CustomerTier.INACTIVE
