"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict
from pythonjsonlogger import jsonlogger

from society_portal.config import settings


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


def log_session_event(event: str, user_id: str | None = None, reason: str | None = None) -> None:
    """Log session lifecycle changes (restore, login, logout, invalidation)"""
    logging.info(
        "Session updated",
        extra={
            "step": f"session_{event}",
            "user_id": user_id,
            "reason": reason,
        },
    )


def log_onboarding_transition(user_id: str | None, from_step: str | None, to_step: str, trigger: str) -> None:
    """Log wizard step changes for funnel analysis"""
    logging.info(
        "Onboarding step changed",
        extra={
            "user_id": user_id,
            "step": "onboarding_transition",
            "from_step": from_step,
            "to_step": to_step,
            "trigger": trigger,
        },
    )


def log_checkout_outcome(
    invoice_id: str,
    order_id: str | None,
    outcome: str,
    duration_ms: float | None = None,
) -> None:
    """Log structured checkout outcome for reconciliation"""
    logging.info(
        "Checkout completed",
        extra={
            "invoice_id": invoice_id,
            "order_id": order_id,
            "step": "checkout_complete",
            "checkout_outcome": outcome,
            "duration_ms": duration_ms,
        },
    )
