"""GET /v1/customers/{id}/tier - discount tier and activity label"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from kiosk_pricing.api.dependencies import get_pricing_settings, get_request_id, get_today
from kiosk_pricing.api.v1.lookups import (
    backend_errors,
    parse_uuid,
    require_customer,
    resolve_customer_tier,
    volume_window,
)
from kiosk_pricing.api.v1.schemas import CustomerTierResponse, tier_schema
from kiosk_pricing.domain.fees import loyalty_points_worth
from kiosk_pricing.domain.models import PricingSettings
from kiosk_pricing.domain.tiers import classify_customer
from kiosk_pricing.infrastructure.database.repositories import CustomerRepository
from kiosk_pricing.infrastructure.database.session import get_db
from kiosk_pricing.utils.date_utils import time_ago
from kiosk_pricing.utils.formatting import format_currency

router = APIRouter()


@router.get("/customers/{customer_id}/tier", response_model=CustomerTierResponse)
def get_customer_tier(
    customer_id: str,
    request: Request,
    db: Session = Depends(get_db),
    pricing: PricingSettings = Depends(get_pricing_settings),
    today=Depends(get_today),
):
    """
    Resolve the pricing tier and the vip/active/normal/inactive label.

    The label is cached on the customer row when it changed.
    """
    request_id = get_request_id(request)
    customer_uuid = parse_uuid(customer_id, "customer")
    window_start, window_end = volume_window(today)

    with backend_errors(db, request_id):
        customer = require_customer(db, customer_uuid)
        tier, volume = resolve_customer_tier(db, customer_uuid, today, request_id)
        activity = classify_customer(volume, customer.last_transaction_date, pricing, today)
        changed = CustomerRepository(db).update_tier(customer, activity)
        if changed:
            db.commit()

    return CustomerTierResponse(
        customer_id=str(customer_uuid),
        activity_tier=activity.value,
        tier_changed=changed,
        monthly_cash_volume=float(volume),
        window_start=window_start,
        window_end=window_end,
        discount_tier=tier_schema(tier) if tier is not None else None,
        loyalty_points=customer.loyalty_points or 0,
        loyalty_points_worth=float(loyalty_points_worth(customer.loyalty_points or 0, pricing)),
        balance_display=format_currency(customer.balance, pricing.currency),
        last_activity=time_ago(customer.last_transaction_date, today) if customer.last_transaction_date else None,
    )
