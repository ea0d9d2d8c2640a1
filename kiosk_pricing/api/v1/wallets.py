"""GET /v1/wallets/alerts - wallets close to their daily or monthly limits"""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from kiosk_pricing.api.dependencies import get_request_id, get_today
from kiosk_pricing.api.v1.lookups import backend_errors
from kiosk_pricing.api.v1.schemas import WalletAlertSchema, WalletAlertsResponse
from kiosk_pricing.config import settings
from kiosk_pricing.domain.usage import collect_wallet_alerts
from kiosk_pricing.infrastructure.database.repositories import WalletRepository
from kiosk_pricing.infrastructure.database.session import get_db

router = APIRouter()


@router.get("/wallets/alerts", response_model=WalletAlertsResponse)
def get_wallet_alerts(request: Request, db: Session = Depends(get_db), today=Depends(get_today)):
    with backend_errors(db, get_request_id(request)):
        snapshots = WalletRepository(db).list_usage_snapshots(today)

    alerts = collect_wallet_alerts(snapshots, settings.wallet_alert_threshold_percent)
    return WalletAlertsResponse(
        alerts=[
            WalletAlertSchema(
                wallet_id=a.wallet_id,
                wallet_name=a.wallet_name,
                alert_type=a.alert_type,
                percentage=a.percentage,
                used=float(a.used),
                limit=float(a.limit),
                color=a.color,
            )
            for a in alerts
        ]
    )
