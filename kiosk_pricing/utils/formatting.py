"""Currency and number rendering for the Arabic (ar-EG) UI"""

from decimal import Decimal
from typing import Any

from kiosk_pricing.domain.money import to_decimal

_ARABIC_DIGITS = str.maketrans({
    "0": "٠", "1": "١", "2": "٢", "3": "٣", "4": "٤",
    "5": "٥", "6": "٦", "7": "٧", "8": "٨", "9": "٩",
    ",": "٬", ".": "٫",
})


def format_number(value: Any, decimals: int = 2, arabic_digits: bool = True) -> str:
    """Grouped number with fixed decimals, e.g. 1234.5 -> ١٬٢٣٤٫٥٠"""
    number = to_decimal(value)
    if number is None:
        number = Decimal("0")
    text = f"{number:,.{decimals}f}"
    return text.translate(_ARABIC_DIGITS) if arabic_digits else text


def format_currency(amount: Any, currency: str = "ج", arabic_digits: bool = True) -> str:
    """Amount with currency suffix; negative balances keep a leading minus"""
    number = to_decimal(amount)
    if number is None:
        number = Decimal("0")
    formatted = format_number(abs(number), arabic_digits=arabic_digits)
    sign = "-" if round(number, 2) < 0 else ""
    return f"{sign}{formatted} {currency}"
