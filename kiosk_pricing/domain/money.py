"""Decimal money helpers - two decimal places, half-up rounding"""

from decimal import Decimal, InvalidOperation, ROUND_HALF_UP, localcontext
from typing import Any, Optional

MONEY_Q = Decimal("0.01")
ZERO = Decimal("0.00")
# Working precision for bracket and discount arithmetic; larger results are rejected
CALC_PRECISION = 60


def to_decimal(value: Any) -> Optional[Decimal]:
    """Parse a number from str/int/float/Decimal; None when not a finite number"""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        number = value
    else:
        try:
            number = Decimal(str(value).strip())
        except (InvalidOperation, ValueError):
            return None
    if not number.is_finite():
        return None
    return number


def round2(value: Decimal) -> Decimal:
    """Round to currency minor units (half-up)"""
    return value.quantize(MONEY_Q, rounding=ROUND_HALF_UP)


def to_money(value: Any) -> Optional[Decimal]:
    """Like to_decimal, quantized to two places; None on overflow"""
    number = to_decimal(value)
    if number is None:
        return None
    try:
        return round2(number)
    except InvalidOperation:
        return None


def money(value: Any) -> Decimal:
    """Strict variant of to_money for trusted inputs"""
    return round2(Decimal(str(value)))


def has_sub_cent(value: Decimal) -> bool:
    """True when value carries non-zero digits past the second decimal place"""
    return value != value.quantize(MONEY_Q, rounding=ROUND_HALF_UP)


def ceil_div(numerator: Decimal, denominator: Decimal) -> int:
    """Exact ceiling of numerator / denominator (exact multiples are not bumped)"""
    with localcontext() as ctx:
        ctx.prec = CALC_PRECISION
        quotient, remainder = divmod(numerator, denominator)
    if remainder and (remainder > 0) == (denominator > 0):
        return int(quotient) + 1
    return int(quotient)


def floor_div(numerator: Decimal, denominator: Decimal) -> int:
    with localcontext() as ctx:
        ctx.prec = CALC_PRECISION
        quotient, remainder = divmod(numerator, denominator)
    if remainder and (remainder > 0) != (denominator > 0):
        return int(quotient) - 1
    return int(quotient)
