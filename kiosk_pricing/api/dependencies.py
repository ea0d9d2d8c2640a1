"""Dependency injection for FastAPI endpoints"""

import logging
from datetime import date

from fastapi import Depends, HTTPException, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from kiosk_pricing.domain.exceptions import InvalidPricingSettingsError
from kiosk_pricing.domain.models import PricingSettings
from kiosk_pricing.infrastructure.clients.notifications import NotificationClient
from kiosk_pricing.infrastructure.database.repositories import SettingsRepository
from kiosk_pricing.infrastructure.database.session import get_db
from kiosk_pricing.infrastructure.observability.metrics import backend_failures_counter
from kiosk_pricing.infrastructure.realtime import RealtimeEventApplier

_event_applier = RealtimeEventApplier()


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_today() -> date:
    """Business date; overridden in tests to pin the clock"""
    return date.today()


def get_notification_client() -> NotificationClient:
    """Provide notification webhook client instance"""
    return NotificationClient()


def get_event_applier() -> RealtimeEventApplier:
    """Process-wide applier so duplicate deliveries are recognised across requests"""
    return _event_applier


def get_pricing_settings(db: Session = Depends(get_db)) -> PricingSettings:
    """Load and validate pricing policy once per request"""
    try:
        return SettingsRepository(db).get_pricing_settings()
    except InvalidPricingSettingsError as e:
        logging.error(f"Invalid pricing settings: {e}")
        raise HTTPException(status_code=503, detail="Pricing settings are misconfigured")
    except SQLAlchemyError as e:
        backend_failures_counter.inc()
        logging.error(f"Failed to load pricing settings: {e}")
        raise HTTPException(status_code=503, detail="Backend unavailable, please retry")
