"""Structured JSON logging for production observability"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict, Optional
from pythonjsonlogger import jsonlogger


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = "cycles-gateway"


def setup_logging(level: str = "INFO") -> None:
    """Configure structured JSON logging"""
    logger = logging.getLogger()
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    handler = logging.StreamHandler(sys.stdout)
    formatter = CustomJsonFormatter(
        "%(timestamp)s %(level)s %(name)s %(message)s"
    )
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def log_cycle_computation(
    request_id: str,
    obligation_id: str,
    kind: str,
    cycle_count: int,
    duration_ms: float,
    status_counts: Optional[Dict[str, int]] = None,
) -> None:
    """Log structured cycle computation outcome"""
    logging.info(
        "Cycles computed",
        extra={
            "request_id": request_id,
            "obligation_id": obligation_id,
            "obligation_kind": kind,
            "step": "cycles_computed",
            "cycle_count": cycle_count,
            "status_counts": status_counts or {},
            "duration_ms": duration_ms,
        },
    )


def log_override_change(request_id: str, obligation_id: str, cycle_number: int, action: str) -> None:
    """Log an override upsert/delete for audit"""
    logging.info(
        "Cycle override changed",
        extra={
            "request_id": request_id,
            "obligation_id": obligation_id,
            "cycle_number": cycle_number,
            "step": "override_" + action,
        },
    )
