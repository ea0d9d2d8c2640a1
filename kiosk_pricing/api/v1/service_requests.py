"""POST /v1/service-requests/estimate - customer-side fee estimate and balance check"""

from fastapi import APIRouter, Depends, HTTPException, Request
from sqlalchemy.orm import Session

from kiosk_pricing.api.dependencies import get_pricing_settings, get_request_id, get_today
from kiosk_pricing.api.v1.lookups import backend_errors, parse_uuid, require_customer, resolve_customer_tier
from kiosk_pricing.api.v1.schemas import (
    ServiceRequestEstimateRequest,
    ServiceRequestEstimateResponse,
    breakdown_schema,
)
from kiosk_pricing.domain.models import PricingSettings
from kiosk_pricing.domain.money import money
from kiosk_pricing.domain.transactions import estimate_service_request
from kiosk_pricing.infrastructure.database.session import get_db

router = APIRouter()


@router.post("/service-requests/estimate", response_model=ServiceRequestEstimateResponse)
def estimate_request(
    request_body: ServiceRequestEstimateRequest,
    request: Request,
    db: Session = Depends(get_db),
    pricing: PricingSettings = Depends(get_pricing_settings),
    today=Depends(get_today),
):
    """Estimate fees with the customer's tier and tell whether the balance covers the request"""
    request_id = get_request_id(request)
    customer_uuid = parse_uuid(request_body.customer_id, "customer")

    with backend_errors(db, request_id):
        customer = require_customer(db, customer_uuid)
        tier, _ = resolve_customer_tier(db, customer_uuid, today, request_id)

    estimate = estimate_service_request(
        request_body.amount,
        request_body.request_type,
        pricing,
        balance=money(customer.balance),
        can_request_services=bool(customer.can_request_services),
        tier=tier,
    )
    if estimate is None:
        raise HTTPException(status_code=422, detail="No quote for the given amount")

    return ServiceRequestEstimateResponse(
        amount=float(estimate.amount),
        estimated_fees=float(estimate.estimated_fees),
        total=float(estimate.total),
        can_afford=estimate.can_afford,
        breakdown=breakdown_schema(estimate.breakdown),
    )
