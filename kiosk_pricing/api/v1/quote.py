"""POST /v1/quote - live fee quote for a cash transfer or withdrawal"""

import time

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from kiosk_pricing.api.dependencies import get_pricing_settings, get_request_id, get_today
from kiosk_pricing.api.v1.lookups import backend_errors, parse_uuid, require_customer, resolve_customer_tier
from kiosk_pricing.api.v1.schemas import QuoteRequest, QuoteResponse, breakdown_schema
from kiosk_pricing.domain.fees import quote_for_settings
from kiosk_pricing.domain.models import PricingSettings
from kiosk_pricing.infrastructure.database.session import get_db
from kiosk_pricing.infrastructure.observability.logging import log_quote
from kiosk_pricing.infrastructure.observability.metrics import record_quote

router = APIRouter()


@router.post("/quote", response_model=QuoteResponse)
def create_quote(
    request_body: QuoteRequest,
    request: Request,
    db: Session = Depends(get_db),
    pricing: PricingSettings = Depends(get_pricing_settings),
    today=Depends(get_today),
):
    """
    Quote fees for an operation before it is confirmed.

    Flow:
    1. Resolve the customer's discount tier from trailing cash volume (optional)
    2. Run the fee calculator with the stored fee schedule
    3. Return every line item, or 422 when the input yields no quote
    """
    start_time = time.time()
    request_id = get_request_id(request)

    tier = None
    volume = None
    if request_body.customer_id:
        customer_id = parse_uuid(request_body.customer_id, "customer")
        with backend_errors(db, request_id):
            require_customer(db, customer_id)
            tier, volume = resolve_customer_tier(db, customer_id, today, request_id)

    breakdown = quote_for_settings(
        request_body.amount,
        request_body.operation_type,
        pricing,
        tier=tier,
        wallet_fees=request_body.wallet_fees,
    )

    duration_ms = (time.time() - start_time) * 1000
    record_quote(request_body.operation_type, breakdown)
    log_quote(request_id, request_body.customer_id, request_body.operation_type, breakdown, duration_ms)

    if breakdown is None:
        raise HTTPException(status_code=422, detail="No quote for the given amount and operation")

    return QuoteResponse(
        breakdown=breakdown_schema(breakdown),
        monthly_cash_volume=float(volume) if volume is not None else None,
    )
