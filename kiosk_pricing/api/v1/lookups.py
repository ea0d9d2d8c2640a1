"""Shared endpoint helpers: id parsing, backend error mapping and customer tier lookup"""

import logging
import uuid
from contextlib import contextmanager
from datetime import date
from decimal import Decimal
from typing import Iterator, Optional, Tuple

from fastapi import HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from kiosk_pricing.config import settings
from kiosk_pricing.domain.models import DiscountTier
from kiosk_pricing.domain.tiers import match_discount_tier
from kiosk_pricing.infrastructure.database.models import CustomerRecord
from kiosk_pricing.infrastructure.database.repositories import (
    CustomerRepository,
    DiscountTierRepository,
    TransactionRepository,
)
from kiosk_pricing.infrastructure.observability.logging import log_tier_warning
from kiosk_pricing.infrastructure.observability.metrics import backend_failures_counter, tier_warning_counter
from kiosk_pricing.utils.date_utils import trailing_window


def parse_uuid(value: str, what: str) -> uuid.UUID:
    try:
        return uuid.UUID(str(value))
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid {what} ID format")


@contextmanager
def backend_errors(db: Session, request_id: str) -> Iterator[None]:
    """Map database failures to a retryable 503 and roll back the session"""
    try:
        yield
    except SQLAlchemyError as e:
        db.rollback()
        backend_failures_counter.inc()
        logging.error(f"Backend error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Backend unavailable, please retry")


def require_customer(db: Session, customer_id: uuid.UUID) -> CustomerRecord:
    customer = CustomerRepository(db).get_customer(customer_id)
    if customer is None:
        raise HTTPException(status_code=404, detail="Customer not found")
    return customer


def volume_window(today: date) -> Tuple[date, date]:
    return trailing_window(today, settings.tier_volume_window_days)


def resolve_customer_tier(
    db: Session,
    customer_id: uuid.UUID,
    today: date,
    request_id: str,
) -> Tuple[Optional[DiscountTier], Decimal]:
    """Discount tier for the customer's trailing cash volume, plus that volume"""
    volume = TransactionRepository(db).get_customer_monthly_cash_volume(customer_id, volume_window(today))
    tiers = DiscountTierRepository(db).list_active_discount_tiers()

    match = match_discount_tier(volume, tiers)
    if match.warning:
        tier_warning_counter.labels(kind=match.warning_kind).inc()
        log_tier_warning(request_id, str(customer_id), match.warning, match.warning_kind)

    return match.tier, volume
