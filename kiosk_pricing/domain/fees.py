"""Fee calculation engine - the single source of truth for cash operation quotes"""

from decimal import Decimal, InvalidOperation, localcontext
from typing import Any, Optional

from kiosk_pricing.domain.models import (
    CASH_FEE_OPERATIONS,
    DiscountTier,
    FeeBreakdown,
    OperationType,
    PricingSettings,
)
from kiosk_pricing.domain.money import (
    CALC_PRECISION,
    ZERO,
    ceil_div,
    floor_div,
    has_sub_cent,
    round2,
    to_decimal,
    to_money,
)


def _cash_operation(operation_type: Any) -> Optional[OperationType]:
    try:
        operation = OperationType(operation_type)
    except ValueError:
        return None
    return operation if operation in CASH_FEE_OPERATIONS else None


def count_brackets(amount: Decimal, fee_per: Decimal, tolerance: Decimal = ZERO) -> int:
    """
    Number of fee brackets an amount spans.

    Ceiling division: 500 / 500 -> 1, 500.01 / 500 -> 2. With a tolerance the
    amount is reduced by the slack first, but a positive amount always pays at
    least one bracket.
    """
    if amount <= 0:
        return 0
    return max(1, ceil_div(amount - tolerance, fee_per))


def calculate_base_fees(
    amount: Decimal,
    fee_base: Decimal,
    fee_per: Decimal,
    tolerance: Decimal = ZERO,
) -> Decimal:
    """Service fee before any tier discount: fee_base per started bracket of fee_per"""
    return round2(count_brackets(amount, fee_per, tolerance) * fee_base)


def calculate_fees(
    amount: Any,
    operation_type: Any,
    tier: Optional[DiscountTier],
    wallet_fees: Any,
    fee_base: Any,
    fee_per: Any,
    tolerance: Any = ZERO,
) -> Optional[FeeBreakdown]:
    """
    Quote a cash transfer or withdrawal.

    Steps:
    1. base = ceil(amount / fee_per) * fee_base
    2. discount percent from the tier for this operation (0 without a tier)
    3. discount = base * percent / 100, rounded half-up to 2 places
    4. final service fees = base - discount
    5. total charged = amount + wallet fees + final service fees
    6. profit = wallet fees + final service fees (the amount itself passes through)

    Returns None ("no quote") for any invalid input instead of raising, so it
    can be called on every keystroke of a form. Amounts with fractions of a
    cent get no quote, and so do values too large to compute exactly.
    """
    with localcontext() as ctx:
        ctx.prec = CALC_PRECISION
        try:
            return _calculate(amount, operation_type, tier, wallet_fees, fee_base, fee_per, tolerance)
        except InvalidOperation:
            return None


def _calculate(
    amount: Any,
    operation_type: Any,
    tier: Optional[DiscountTier],
    wallet_fees: Any,
    fee_base: Any,
    fee_per: Any,
    tolerance: Any,
) -> Optional[FeeBreakdown]:
    amount = to_decimal(amount)
    wallet_fees = to_money(wallet_fees)
    fee_base = to_money(fee_base)
    fee_per = to_decimal(fee_per)
    tolerance = to_money(tolerance)
    operation = _cash_operation(operation_type)

    if None in (amount, wallet_fees, fee_base, fee_per, tolerance, operation):
        return None
    if amount <= 0 or has_sub_cent(amount):
        return None
    if fee_per <= 0 or fee_base < 0 or wallet_fees < 0 or tolerance < 0:
        return None

    amount = round2(amount)
    brackets = count_brackets(amount, fee_per, tolerance)
    base_service_fees = round2(brackets * fee_base)

    discount_percent = tier.discount_percent_for(operation) if tier is not None else Decimal("0")
    discount_amount = round2(base_service_fees * discount_percent / 100)
    final_service_fees = base_service_fees - discount_amount

    return FeeBreakdown(
        amount=amount,
        operation_type=operation,
        wallet_fees=wallet_fees,
        fee_base=fee_base,
        fee_per=fee_per,
        brackets=brackets,
        base_service_fees=base_service_fees,
        tier_id=tier.id if tier is not None else None,
        tier_discount_percent=discount_percent,
        tier_discount_amount=discount_amount,
        final_service_fees=final_service_fees,
        total_charged=amount + wallet_fees + final_service_fees,
        profit=wallet_fees + final_service_fees,
    )


def quote_for_settings(
    amount: Any,
    operation_type: Any,
    pricing: PricingSettings,
    tier: Optional[DiscountTier] = None,
    wallet_fees: Any = None,
) -> Optional[FeeBreakdown]:
    """calculate_fees with the fee schedule taken from an explicit PricingSettings"""
    return calculate_fees(
        amount,
        operation_type,
        tier,
        pricing.wallet_default_fee if wallet_fees is None else wallet_fees,
        pricing.service_fee_base,
        pricing.service_fee_per,
        pricing.service_fee_tolerance,
    )


def calculate_loyalty_points(amount: Any, points_per: Any) -> int:
    """One point per full points_per of amount"""
    amount = to_decimal(amount)
    points_per = to_decimal(points_per)
    if amount is None or points_per is None or amount <= 0 or points_per <= 0:
        return 0
    try:
        return floor_div(amount, points_per)
    except InvalidOperation:
        return 0


def loyalty_points_worth(points: int, pricing: PricingSettings) -> Decimal:
    """Redemption value of a loyalty point balance"""
    if points <= 0:
        return ZERO
    return round2(points * pricing.loyalty_points_value)
