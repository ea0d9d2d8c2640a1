"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pythonjsonlogger.json import JsonFormatter

from kiosk_pricing.domain.models import FeeBreakdown


class CustomJsonFormatter(JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = "kiosk-pricing"


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # JSON handler for stdout
    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_quote(
    request_id: str,
    customer_id: Optional[str],
    operation_type: str,
    breakdown: Optional[FeeBreakdown],
    duration_ms: float,
) -> None:
    """Log a quote outcome; money is logged as strings to keep Decimal precision"""
    if breakdown is None:
        logging.info(
            "No quote for input",
            extra={
                "request_id": request_id,
                "customer_id": customer_id,
                "step": "quote",
                "operation_type": operation_type,
                "outcome": "no_quote",
                "duration_ms": duration_ms,
            },
        )
        return

    logging.info(
        "Quote computed",
        extra={
            "request_id": request_id,
            "customer_id": customer_id,
            "step": "quote",
            "operation_type": operation_type,
            "outcome": "quoted",
            "tier_id": breakdown.tier_id,
            "total_charged": str(breakdown.total_charged),
            "profit": str(breakdown.profit),
            "duration_ms": duration_ms,
        },
    )


def log_tier_warning(request_id: str, customer_id: Optional[str], warning: str, kind: Optional[str]) -> None:
    """Data-integrity problem in the discount tier table"""
    logging.warning(
        warning,
        extra={
            "request_id": request_id,
            "customer_id": customer_id,
            "step": "tier_resolution",
            "warning_kind": kind,
        },
    )
