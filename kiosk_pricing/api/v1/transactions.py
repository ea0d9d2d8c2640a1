"""POST /v1/transactions and balance adjustments - persist priced operations"""

import logging

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from kiosk_pricing.api.dependencies import get_notification_client, get_pricing_settings, get_request_id, get_today
from kiosk_pricing.api.v1.lookups import backend_errors, parse_uuid, require_customer, resolve_customer_tier
from kiosk_pricing.api.v1.schemas import (
    BalanceAdjustmentRequest,
    BalanceAdjustmentResponse,
    TransactionRequest,
    TransactionResponse,
)
from kiosk_pricing.domain.fees import calculate_loyalty_points, quote_for_settings
from kiosk_pricing.domain.models import AccountType, OperationType, PricingSettings
from kiosk_pricing.domain.transactions import balance_adjustment_draft, draft_from_breakdown, machine_operation_draft
from kiosk_pricing.infrastructure.clients.notifications import NotificationClient, deliver_quietly
from kiosk_pricing.infrastructure.database.repositories import CustomerRepository, TransactionRepository
from kiosk_pricing.infrastructure.database.session import get_db
from kiosk_pricing.infrastructure.observability.metrics import transaction_counter
from kiosk_pricing.utils.formatting import format_currency

router = APIRouter()


@router.post("/transactions", response_model=TransactionResponse)
def create_transaction(
    request_body: TransactionRequest,
    background_tasks: BackgroundTasks,
    request: Request,
    db: Session = Depends(get_db),
    pricing: PricingSettings = Depends(get_pricing_settings),
    notification_client: NotificationClient = Depends(get_notification_client),
    today=Depends(get_today),
):
    """
    Record a transaction.

    Flow:
    1. Cash transfer/withdrawal: re-quote server-side with the customer's tier
       (client-side quotes are never trusted)
    2. Machine operation: profit is the entered commission
    3. Persist, update customer activity and loyalty points
    4. Notify the customer asynchronously
    """
    request_id = get_request_id(request)
    customer_id = parse_uuid(request_body.customer_id, "customer") if request_body.customer_id else None
    branch_id = str(parse_uuid(request_body.branch_id, "branch")) if request_body.branch_id else None

    with backend_errors(db, request_id):
        customer = require_customer(db, customer_id) if customer_id else None

        if request_body.account_type == AccountType.CASH.value:
            tier = None
            if customer_id:
                tier, _ = resolve_customer_tier(db, customer_id, today, request_id)
            breakdown = quote_for_settings(
                request_body.amount,
                request_body.operation_type,
                pricing,
                tier=tier,
                wallet_fees=request_body.wallet_fees,
            )
            if breakdown is None:
                raise HTTPException(status_code=422, detail="No quote for the given amount and operation")
            draft = draft_from_breakdown(
                breakdown,
                on_date=today,
                account_id=request_body.account_id,
                account_name=request_body.account_name,
                customer_id=str(customer_id) if customer_id else None,
                branch_id=branch_id,
                notes=request_body.notes,
            )
        else:
            draft = machine_operation_draft(
                request_body.amount,
                request_body.commission if request_body.commission is not None else 0,
                OperationType(request_body.operation_type),
                on_date=today,
                account_id=request_body.account_id,
                account_name=request_body.account_name,
                customer_id=str(customer_id) if customer_id else None,
                branch_id=branch_id,
                notes=request_body.notes,
            )
            if draft is None:
                raise HTTPException(status_code=422, detail="Invalid amount or commission")

        db_transaction = TransactionRepository(db).create(draft)

        points = 0
        if customer is not None:
            points = calculate_loyalty_points(draft.amount, pricing.loyalty_points_per)
            CustomerRepository(db).record_activity(customer, today, points)

        db.commit()

    transaction_counter.labels(operation=draft.operation_type.value, account_type=draft.account_type.value).inc()
    logging.info(
        "Transaction recorded",
        extra={
            "request_id": request_id,
            "transaction_id": str(db_transaction.id),
            "operation_type": draft.operation_type.value,
            "account_type": draft.account_type.value,
            "profit": str(draft.profit),
        },
    )

    if customer is not None:
        background_tasks.add_task(
            deliver_quietly,
            notification_client,
            {
                "event": "TRANSACTION_RECORDED",
                "transaction_id": str(db_transaction.id),
                "customer_id": str(customer_id),
                "operation_type": draft.operation_type.value,
                "amount": str(draft.amount),
                "total_charged": str(draft.total_charged),
                "loyalty_points_earned": points,
                "message": f"تم تسجيل عملية بقيمة {format_currency(draft.total_charged, pricing.currency)}",
            },
        )

    return TransactionResponse(
        transaction_id=str(db_transaction.id),
        account_type=draft.account_type.value,
        operation_type=draft.operation_type.value,
        amount=float(draft.amount),
        wallet_fees=float(draft.wallet_fees),
        service_fees=float(draft.service_fees),
        tier_discount_amount=float(draft.tier_discount_amount),
        total_charged=float(draft.total_charged),
        profit=float(draft.profit),
        loyalty_points_earned=points,
    )


@router.post("/customers/{customer_id}/balance-adjustments", response_model=BalanceAdjustmentResponse)
def adjust_balance(
    customer_id: str,
    request_body: BalanceAdjustmentRequest,
    request: Request,
    db: Session = Depends(get_db),
    today=Depends(get_today),
):
    """
    Correct a customer's balance.

    The balance changes in place; the correction itself is recorded as a new
    adjustment transaction so history is never edited.
    """
    request_id = get_request_id(request)
    customer_uuid = parse_uuid(customer_id, "customer")

    with backend_errors(db, request_id):
        customer = require_customer(db, customer_uuid)
        draft = balance_adjustment_draft(
            str(customer_uuid),
            request_body.amount,
            on_date=today,
            reason=request_body.reason,
            branch_id=str(customer.branch_id) if customer.branch_id else None,
        )
        if draft is None:
            raise HTTPException(status_code=422, detail="Adjustment amount must be a non-zero number")

        CustomerRepository(db).apply_balance_delta(customer, draft.total_charged)
        db_transaction = TransactionRepository(db).create(draft)
        db.commit()

    transaction_counter.labels(operation=draft.operation_type.value, account_type=draft.account_type.value).inc()
    logging.info(
        "Balance adjusted",
        extra={"request_id": request_id, "customer_id": customer_id, "delta": str(draft.total_charged)},
    )

    return BalanceAdjustmentResponse(
        transaction_id=str(db_transaction.id),
        customer_id=str(customer_uuid),
        balance=float(customer.balance),
    )
