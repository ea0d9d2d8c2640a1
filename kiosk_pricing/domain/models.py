"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, fields
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Union

from kiosk_pricing.domain.exceptions import InvalidPricingSettingsError, InvalidReminderError, InvalidTierError
from kiosk_pricing.domain.money import to_decimal


class OperationType(str, Enum):
    TRANSFER = "transfer"
    WITHDRAWAL = "withdrawal"
    RECHARGE = "recharge"
    ADJUSTMENT = "adjustment"  # synthetic balance correction


CASH_FEE_OPERATIONS = (OperationType.TRANSFER, OperationType.WITHDRAWAL)


class AccountType(str, Enum):
    CASH = "cash"  # electronic wallet operated by the shop
    MACHINE = "machine"  # agent machine, profit is an entered commission


class CustomerTier(str, Enum):
    VIP = "vip"
    ACTIVE = "active"
    NORMAL = "normal"
    INACTIVE = "inactive"


class CycleType(str, Enum):
    MONTHLY = "monthly"
    DAYS = "days"


class ContactMethod(str, Enum):
    WHATSAPP = "whatsapp"
    CALL = "call"


_TEXT_SETTINGS = ("app_name", "currency")
_INTEGER_SETTINGS = ("inactive_days",)


@dataclass
class PricingSettings:
    """
    Global pricing policy, parsed once from the backend's key/value settings table.

    Numeric fields are coerced to Decimal on construction and validated; a bad
    record fails here at load time so fee calculations never re-parse strings.
    """

    wallet_default_fee: Decimal = Decimal("1")
    service_fee_base: Decimal = Decimal("5")
    service_fee_per: Decimal = Decimal("500")  # bracket size
    service_fee_tolerance: Decimal = Decimal("0")  # slack past a bracket boundary, off by default
    loyalty_points_per: Decimal = Decimal("500")
    loyalty_points_value: Decimal = Decimal("10")
    vip_threshold: Decimal = Decimal("50000")
    active_threshold: Decimal = Decimal("10000")
    inactive_days: int = 30
    app_name: str = "سنترال"
    currency: str = "ج"

    def __post_init__(self) -> None:
        for f in fields(self):
            if f.name in _TEXT_SETTINGS or f.name in _INTEGER_SETTINGS:
                continue
            number = to_decimal(getattr(self, f.name))
            if number is None:
                raise InvalidPricingSettingsError(f"{f.name} must be a number, got {getattr(self, f.name)!r}")
            if number < 0:
                raise InvalidPricingSettingsError(f"{f.name} must be >= 0, got {number}")
            setattr(self, f.name, number)

        if self.service_fee_per <= 0:
            raise InvalidPricingSettingsError("service_fee_per must be > 0")
        if self.service_fee_tolerance >= self.service_fee_per:
            raise InvalidPricingSettingsError("service_fee_tolerance must be smaller than service_fee_per")
        if self.vip_threshold < self.active_threshold:
            raise InvalidPricingSettingsError("vip_threshold must be >= active_threshold")
        if isinstance(self.inactive_days, bool) or not isinstance(self.inactive_days, int) or self.inactive_days < 0:
            raise InvalidPricingSettingsError(f"inactive_days must be a non-negative integer, got {self.inactive_days!r}")

    @classmethod
    def from_key_values(
        cls, rows: Union[Mapping[str, Optional[str]], Iterable[Tuple[str, Optional[str]]]]
    ) -> "PricingSettings":
        """Merge stored key/value rows over the defaults. Unknown keys are ignored."""
        values = dict(rows.items()) if isinstance(rows, Mapping) else dict(rows)
        kwargs: Dict[str, Any] = {}

        for f in fields(cls):
            raw = values.get(f.name)
            if raw is None:
                continue
            if f.name in _TEXT_SETTINGS:
                kwargs[f.name] = str(raw)
            elif f.name in _INTEGER_SETTINGS:
                number = to_decimal(raw)
                if number is None or number != number.to_integral_value():
                    raise InvalidPricingSettingsError(f"{f.name} must be a whole number, got {raw!r}")
                kwargs[f.name] = int(number)
            else:
                number = to_decimal(raw)
                if number is None:
                    raise InvalidPricingSettingsError(f"{f.name} must be a number, got {raw!r}")
                kwargs[f.name] = number

        return cls(**kwargs)


TIER_NAMES = {1: "برونزية", 2: "فضية", 3: "ذهبية", 4: "ماسية"}
TIER_ICONS = {1: "🥉", 2: "🥈", 3: "🥇", 4: "💎"}


def tier_name(order: int) -> str:
    return TIER_NAMES.get(order, "غير محدد")


def tier_icon(order: int) -> str:
    return TIER_ICONS.get(order, "⭐")


@dataclass
class DiscountTier:
    """Monthly cash-volume band [threshold_from, threshold_to) with per-operation discounts"""

    id: str
    order: int
    threshold_from: Decimal
    threshold_to: Optional[Decimal]  # None = open-ended top band
    transfer_discount_percent: Decimal
    withdrawal_discount_percent: Decimal
    is_active: bool = True
    name: str = ""
    icon: str = ""

    def __post_init__(self) -> None:
        for name in ("threshold_from", "transfer_discount_percent", "withdrawal_discount_percent"):
            number = to_decimal(getattr(self, name))
            if number is None:
                raise InvalidTierError(f"{name} must be a number")
            setattr(self, name, number)

        if self.threshold_to is not None:
            upper = to_decimal(self.threshold_to)
            if upper is None:
                raise InvalidTierError("threshold_to must be a number")
            self.threshold_to = upper

        if self.threshold_from < 0:
            raise InvalidTierError("threshold_from must be >= 0")
        if self.threshold_to is not None and self.threshold_to <= self.threshold_from:
            raise InvalidTierError("threshold_to must be greater than threshold_from")
        for name in ("transfer_discount_percent", "withdrawal_discount_percent"):
            if not Decimal("0") <= getattr(self, name) <= Decimal("100"):
                raise InvalidTierError(f"{name} must be within 0-100")

        if not self.name:
            self.name = tier_name(self.order)
        if not self.icon:
            self.icon = tier_icon(self.order)

    def contains(self, volume: Decimal) -> bool:
        return self.threshold_from <= volume and (self.threshold_to is None or volume < self.threshold_to)

    def discount_percent_for(self, operation_type: OperationType) -> Decimal:
        if operation_type == OperationType.TRANSFER:
            return self.transfer_discount_percent
        return self.withdrawal_discount_percent


@dataclass(frozen=True)
class FeeBreakdown:
    """Quote for one cash operation - every line item shown before confirmation"""

    amount: Decimal
    operation_type: OperationType
    wallet_fees: Decimal
    fee_base: Decimal
    fee_per: Decimal
    brackets: int
    base_service_fees: Decimal
    tier_id: Optional[str]
    tier_discount_percent: Decimal
    tier_discount_amount: Decimal
    final_service_fees: Decimal
    total_charged: Decimal
    profit: Decimal


@dataclass
class TransactionDraft:
    """Transaction fields ready to be written; never edited after persistence"""

    operation_type: OperationType
    account_type: AccountType
    amount: Decimal
    total_charged: Decimal
    profit: Decimal
    date: date
    account_id: str
    account_name: str
    wallet_fees: Decimal = Decimal("0.00")
    base_service_fees: Decimal = Decimal("0.00")
    tier_discount_percent: Decimal = Decimal("0")
    tier_discount_amount: Decimal = Decimal("0.00")
    service_fees: Decimal = Decimal("0.00")  # final, after discount
    customer_id: Optional[str] = None
    branch_id: Optional[str] = None
    notes: Optional[str] = None


@dataclass
class RechargeReminder:
    """Recurring phone top-up reminder; exactly one cycle parameter is set"""

    customer_id: str
    phone_number: str
    last_recharge_date: date
    cycle_type: CycleType
    cycle_day_of_month: Optional[int] = None
    cycle_days: Optional[int] = None
    remind_before_days: int = 1
    contact_method: ContactMethod = ContactMethod.WHATSAPP
    is_active: bool = True
    next_recharge_date: Optional[date] = None
    id: Optional[str] = None

    def __post_init__(self) -> None:
        self.cycle_type = CycleType(self.cycle_type)
        self.contact_method = ContactMethod(self.contact_method)

        if self.cycle_type == CycleType.MONTHLY:
            if self.cycle_day_of_month is None or self.cycle_days is not None:
                raise InvalidReminderError("monthly reminders need cycle_day_of_month and no cycle_days")
            if not 1 <= self.cycle_day_of_month <= 31:
                raise InvalidReminderError("cycle_day_of_month must be within 1-31")
        else:
            if self.cycle_days is None or self.cycle_day_of_month is not None:
                raise InvalidReminderError("day-interval reminders need cycle_days and no cycle_day_of_month")
            if self.cycle_days < 1:
                raise InvalidReminderError("cycle_days must be >= 1")

        if self.remind_before_days < 0:
            raise InvalidReminderError("remind_before_days must be >= 0")


@dataclass(frozen=True)
class ReminderLabel:
    key: str  # overdue | due_today | tomorrow | soon | upcoming
    text: str
    color: str


@dataclass
class ReminderStatus:
    """Derived, per-day view of a reminder"""

    reminder: RechargeReminder
    next_recharge_date: date
    days_remaining: int
    is_due_today: bool
    is_overdue: bool
    should_remind: bool
    label: ReminderLabel


@dataclass
class WalletUsageSnapshot:
    """Wallet limits alongside the amounts already used in the current day/month"""

    wallet_id: str
    wallet_name: str
    daily_withdrawal_limit: Decimal = Decimal("0")
    daily_transfer_limit: Decimal = Decimal("0")
    monthly_withdrawal_limit: Decimal = Decimal("0")
    monthly_transfer_limit: Decimal = Decimal("0")
    daily_withdrawals: Decimal = Decimal("0")
    daily_transfers: Decimal = Decimal("0")
    monthly_withdrawals: Decimal = Decimal("0")
    monthly_transfers: Decimal = Decimal("0")


@dataclass
class WalletAlert:
    wallet_id: str
    wallet_name: str
    alert_type: str  # daily_withdrawal | daily_transfer | monthly_withdrawal | monthly_transfer
    percentage: int
    used: Decimal
    limit: Decimal
    color: str = ""


@dataclass
class ServiceRequestEstimate:
    amount: Decimal
    estimated_fees: Decimal
    total: Decimal
    can_afford: bool
    breakdown: Optional[FeeBreakdown]
