"""POST /v1/realtime/events - backend change feed, applied idempotently"""

import logging
import uuid

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from kiosk_pricing.api.dependencies import get_event_applier, get_pricing_settings, get_request_id, get_today
from kiosk_pricing.api.v1.lookups import backend_errors, volume_window
from kiosk_pricing.api.v1.schemas import RealtimeEventRequest, RealtimeEventResponse
from kiosk_pricing.domain.models import PricingSettings
from kiosk_pricing.domain.tiers import classify_customer
from kiosk_pricing.infrastructure.database.repositories import CustomerRepository, TransactionRepository
from kiosk_pricing.infrastructure.database.session import get_db
from kiosk_pricing.infrastructure.realtime import RealtimeEvent, RealtimeEventApplier

router = APIRouter()


@router.post("/realtime/events", response_model=RealtimeEventResponse)
def receive_event(
    request_body: RealtimeEventRequest,
    request: Request,
    db: Session = Depends(get_db),
    pricing: PricingSettings = Depends(get_pricing_settings),
    applier: RealtimeEventApplier = Depends(get_event_applier),
    today=Depends(get_today),
):
    """
    Refresh derived customer state after a change in the transactions table.

    The event only says which customer changed; the activity label is recomputed
    from the stored transactions, so duplicates and reordering are harmless.
    """
    request_id = get_request_id(request)
    event = RealtimeEvent(
        event_id=request_body.event_id,
        table=request_body.table,
        kind=request_body.kind,
        record=request_body.record,
    )

    def refresh(evt: RealtimeEvent) -> None:
        if evt.table != "transactions" or not evt.record.get("customer_id"):
            return
        try:
            customer_uuid = uuid.UUID(str(evt.record["customer_id"]))
        except ValueError:
            logging.warning("Realtime event with malformed customer_id", extra={"event_id": evt.event_id})
            return

        customers = CustomerRepository(db)
        customer = customers.get_customer(customer_uuid)
        if customer is None:
            return
        volume = TransactionRepository(db).get_customer_monthly_cash_volume(customer_uuid, volume_window(today))
        label = classify_customer(volume, customer.last_transaction_date, pricing, today)
        if customers.update_tier(customer, label):
            db.commit()

    with backend_errors(db, request_id):
        applied = applier.apply(event, refresh)

    return RealtimeEventResponse(applied=applied)
