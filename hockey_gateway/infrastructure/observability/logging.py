"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from pythonjsonlogger import jsonlogger

from hockey_gateway.config import settings
from hockey_gateway.domain.models import ChargeResult


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = settings.service_name


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


def log_charge(
    request_id: str,
    user_id: Optional[str],
    registration_id: str,
    result: ChargeResult,
    duration_ms: float,
) -> None:
    """Log structured charge outcome for analysis"""
    logging.info(
        "Charge calculated",
        extra={
            "request_id": request_id,
            "user_id": user_id,
            "registration_id": registration_id,
            "step": "charge_complete",
            "discount_code": result.discount_code.code if result.discount_code else None,
            "original_cents": result.original_amount,
            "discount_cents": result.discount_amount,
            "final_cents": result.final_amount,
            "partial_discount": result.is_partial_discount,
            "duration_ms": duration_ms,
        },
    )
