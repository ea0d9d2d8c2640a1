"""Pydantic schemas for API request/response validation"""

from datetime import date
from decimal import Decimal
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from kiosk_pricing.domain.models import DiscountTier, FeeBreakdown, ReminderStatus


class QuoteRequest(BaseModel):
    """Request body for POST /v1/quote"""

    amount: Decimal = Field(..., description="Principal moved by the operation")
    operation_type: str = Field(..., description="transfer | withdrawal")
    wallet_fees: Optional[Decimal] = Field(None, description="Flat wallet fee; defaults to the configured fee")
    customer_id: Optional[str] = Field(None, description="Resolve the customer's discount tier when given")


class FeeBreakdownSchema(BaseModel):
    """Every line item of a quote"""

    amount: float
    operation_type: str
    wallet_fees: float
    brackets: int
    base_service_fees: float
    tier_id: Optional[str] = None
    tier_discount_percent: float
    tier_discount_amount: float
    final_service_fees: float
    total_charged: float
    profit: float


class QuoteResponse(BaseModel):
    """Response for POST /v1/quote"""

    breakdown: FeeBreakdownSchema
    monthly_cash_volume: Optional[float] = None


class TransactionRequest(BaseModel):
    """Request body for POST /v1/transactions"""

    account_type: Literal["cash", "machine"] = "cash"
    account_id: str = Field(..., min_length=1)
    account_name: str = ""
    operation_type: Literal["transfer", "withdrawal", "recharge"]
    amount: Decimal
    wallet_fees: Optional[Decimal] = None
    commission: Optional[Decimal] = Field(None, description="Machine operations only: the shop's commission")
    customer_id: Optional[str] = None
    branch_id: Optional[str] = None
    notes: Optional[str] = None


class TransactionResponse(BaseModel):
    """Response for POST /v1/transactions"""

    transaction_id: str
    account_type: str
    operation_type: str
    amount: float
    wallet_fees: float
    service_fees: float
    tier_discount_amount: float
    total_charged: float
    profit: float
    loyalty_points_earned: int = 0


class BalanceAdjustmentRequest(BaseModel):
    """Request body for POST /v1/customers/{id}/balance-adjustments"""

    amount: Decimal = Field(..., description="Signed correction applied to the balance")
    reason: Optional[str] = None


class BalanceAdjustmentResponse(BaseModel):
    transaction_id: str
    customer_id: str
    balance: float


class DiscountTierSchema(BaseModel):
    id: str
    order: int
    name: str
    icon: str
    threshold_from: float
    threshold_to: Optional[float] = None
    transfer_discount_percent: float
    withdrawal_discount_percent: float


class CustomerTierResponse(BaseModel):
    """Response for GET /v1/customers/{id}/tier"""

    customer_id: str
    activity_tier: str
    tier_changed: bool
    monthly_cash_volume: float
    window_start: date
    window_end: date
    discount_tier: Optional[DiscountTierSchema] = None
    loyalty_points: int
    loyalty_points_worth: float
    balance_display: str
    last_activity: Optional[str] = None


class ServiceRequestEstimateRequest(BaseModel):
    """Request body for POST /v1/service-requests/estimate"""

    customer_id: str
    request_type: Literal["transfer", "withdrawal"]
    amount: Decimal


class ServiceRequestEstimateResponse(BaseModel):
    amount: float
    estimated_fees: float
    total: float
    can_afford: bool
    breakdown: FeeBreakdownSchema


class ReminderRequest(BaseModel):
    """Request body for POST /v1/reminders"""

    customer_id: str
    phone_number: str = Field(..., min_length=1)
    cycle_type: Literal["monthly", "days"]
    cycle_day_of_month: Optional[int] = None
    cycle_days: Optional[int] = None
    last_recharge_date: date
    remind_before_days: int = 1
    contact_method: Literal["whatsapp", "call"] = "whatsapp"


class ReminderSchema(BaseModel):
    """Reminder with derived due date and urgency"""

    reminder_id: Optional[str] = None
    customer_id: str
    phone_number: str
    cycle_type: str
    cycle_day_of_month: Optional[int] = None
    cycle_days: Optional[int] = None
    last_recharge_date: date
    next_recharge_date: date
    days_remaining: int
    is_due_today: bool
    is_overdue: bool
    should_remind: bool
    label: str
    label_key: str
    color: str


class ReminderListResponse(BaseModel):
    reminders: List[ReminderSchema]
    due_today: int
    due_this_week: int


class ReminderDispatchResponse(BaseModel):
    dispatched: int


class WalletAlertSchema(BaseModel):
    wallet_id: str
    wallet_name: str
    alert_type: str
    percentage: int
    used: float
    limit: float
    color: str


class WalletAlertsResponse(BaseModel):
    alerts: List[WalletAlertSchema]


class RealtimeEventRequest(BaseModel):
    """Change event forwarded by the backend's realtime feed"""

    event_id: str = Field(..., min_length=1)
    table: str
    kind: Literal["INSERT", "UPDATE", "DELETE"]
    record: dict = Field(default_factory=dict)


class RealtimeEventResponse(BaseModel):
    applied: bool


def breakdown_schema(breakdown: FeeBreakdown) -> FeeBreakdownSchema:
    return FeeBreakdownSchema(
        amount=float(breakdown.amount),
        operation_type=breakdown.operation_type.value,
        wallet_fees=float(breakdown.wallet_fees),
        brackets=breakdown.brackets,
        base_service_fees=float(breakdown.base_service_fees),
        tier_id=breakdown.tier_id,
        tier_discount_percent=float(breakdown.tier_discount_percent),
        tier_discount_amount=float(breakdown.tier_discount_amount),
        final_service_fees=float(breakdown.final_service_fees),
        total_charged=float(breakdown.total_charged),
        profit=float(breakdown.profit),
    )


def tier_schema(tier: DiscountTier) -> DiscountTierSchema:
    return DiscountTierSchema(
        id=tier.id,
        order=tier.order,
        name=tier.name,
        icon=tier.icon,
        threshold_from=float(tier.threshold_from),
        threshold_to=float(tier.threshold_to) if tier.threshold_to is not None else None,
        transfer_discount_percent=float(tier.transfer_discount_percent),
        withdrawal_discount_percent=float(tier.withdrawal_discount_percent),
    )


def reminder_schema(status: ReminderStatus) -> ReminderSchema:
    reminder = status.reminder
    return ReminderSchema(
        reminder_id=reminder.id,
        customer_id=reminder.customer_id,
        phone_number=reminder.phone_number,
        cycle_type=reminder.cycle_type.value,
        cycle_day_of_month=reminder.cycle_day_of_month,
        cycle_days=reminder.cycle_days,
        last_recharge_date=reminder.last_recharge_date,
        next_recharge_date=status.next_recharge_date,
        days_remaining=status.days_remaining,
        is_due_today=status.is_due_today,
        is_overdue=status.is_overdue,
        should_remind=status.should_remind,
        label=status.label.text,
        label_key=status.label.key,
        color=status.label.color,
    )
