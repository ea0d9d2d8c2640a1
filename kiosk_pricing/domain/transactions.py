"""Transaction drafts built from quotes, commissions and balance corrections"""

from datetime import date
from decimal import Decimal
from typing import Any, Optional

from kiosk_pricing.domain.fees import quote_for_settings
from kiosk_pricing.domain.models import (
    AccountType,
    DiscountTier,
    FeeBreakdown,
    OperationType,
    PricingSettings,
    ServiceRequestEstimate,
    TransactionDraft,
)
from kiosk_pricing.domain.money import ZERO, to_money

ADJUSTMENT_ACCOUNT_NAME = "تعديل يدوي"


def draft_from_breakdown(
    breakdown: FeeBreakdown,
    on_date: date,
    account_id: str,
    account_name: str,
    customer_id: Optional[str] = None,
    branch_id: Optional[str] = None,
    notes: Optional[str] = None,
) -> TransactionDraft:
    """Cash (wallet) operation priced by the fee calculator"""
    return TransactionDraft(
        operation_type=breakdown.operation_type,
        account_type=AccountType.CASH,
        amount=breakdown.amount,
        wallet_fees=breakdown.wallet_fees,
        base_service_fees=breakdown.base_service_fees,
        tier_discount_percent=breakdown.tier_discount_percent,
        tier_discount_amount=breakdown.tier_discount_amount,
        service_fees=breakdown.final_service_fees,
        total_charged=breakdown.total_charged,
        profit=breakdown.profit,
        date=on_date,
        account_id=account_id,
        account_name=account_name,
        customer_id=customer_id,
        branch_id=branch_id,
        notes=notes,
    )


def machine_operation_draft(
    amount: Any,
    commission: Any,
    operation_type: OperationType,
    on_date: date,
    account_id: str,
    account_name: str,
    customer_id: Optional[str] = None,
    branch_id: Optional[str] = None,
    notes: Optional[str] = None,
) -> Optional[TransactionDraft]:
    """
    Agent machine operation: profit is the commission entered by the operator,
    no service fees are derived. Returns None for invalid amounts.
    """
    amount = to_money(amount)
    commission = to_money(commission)
    if amount is None or commission is None or amount <= 0 or commission < 0:
        return None

    return TransactionDraft(
        operation_type=OperationType(operation_type),
        account_type=AccountType.MACHINE,
        amount=amount,
        total_charged=amount + commission,
        profit=commission,
        date=on_date,
        account_id=account_id,
        account_name=account_name,
        customer_id=customer_id,
        branch_id=branch_id,
        notes=notes,
    )


def balance_adjustment_draft(
    customer_id: str,
    delta: Any,
    on_date: date,
    reason: Optional[str] = None,
    branch_id: Optional[str] = None,
) -> Optional[TransactionDraft]:
    """
    Synthetic transaction documenting a manual balance correction.

    amount is the magnitude, total_charged carries the sign; fees and profit are 0.
    """
    delta = to_money(delta)
    if delta is None or delta == 0:
        return None

    return TransactionDraft(
        operation_type=OperationType.ADJUSTMENT,
        account_type=AccountType.CASH,
        amount=abs(delta),
        total_charged=delta,
        profit=ZERO,
        date=on_date,
        account_id=customer_id,
        account_name=ADJUSTMENT_ACCOUNT_NAME,
        customer_id=customer_id,
        branch_id=branch_id,
        notes=reason or "تعديل يدوي على الرصيد",
    )


def can_afford_request(balance: Decimal, can_request_services: bool, amount: Decimal, fees: Decimal) -> bool:
    """Customers with the override flag may run a negative tab; others need the full total"""
    return can_request_services or balance >= amount + fees


def estimate_service_request(
    amount: Any,
    operation_type: Any,
    pricing: PricingSettings,
    balance: Decimal,
    can_request_services: bool,
    tier: Optional[DiscountTier] = None,
) -> Optional[ServiceRequestEstimate]:
    """Customer-side estimate using the same calculator as the admin quote"""
    breakdown = quote_for_settings(amount, operation_type, pricing, tier=tier)
    if breakdown is None:
        return None

    estimated_fees = breakdown.wallet_fees + breakdown.final_service_fees
    return ServiceRequestEstimate(
        amount=breakdown.amount,
        estimated_fees=estimated_fees,
        total=breakdown.total_charged,
        can_afford=can_afford_request(balance, can_request_services, breakdown.amount, estimated_fees),
        breakdown=breakdown,
    )
