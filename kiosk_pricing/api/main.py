"""FastAPI application factory"""

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from kiosk_pricing.api.middleware import RequestIDMiddleware, MetricsMiddleware
from kiosk_pricing.api.v1 import customers, quote, realtime, reminders, service_requests, transactions, wallets
from kiosk_pricing.infrastructure.observability.logging import setup_logging
from kiosk_pricing.config import settings

# Setup structured logging
setup_logging(settings.log_level)


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Kiosk Pricing Service",
        description="Fee quotes, discount tiers and recharge reminders for the e-payment kiosk",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(quote.router, prefix="/v1", tags=["quotes"])
    app.include_router(transactions.router, prefix="/v1", tags=["transactions"])
    app.include_router(customers.router, prefix="/v1", tags=["customers"])
    app.include_router(service_requests.router, prefix="/v1", tags=["service-requests"])
    app.include_router(reminders.router, prefix="/v1", tags=["reminders"])
    app.include_router(wallets.router, prefix="/v1", tags=["wallets"])
    app.include_router(realtime.router, prefix="/v1", tags=["realtime"])

    return app


app = create_app()
