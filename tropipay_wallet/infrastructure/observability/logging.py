"""Structured JSON logging with redaction of credentials and second-factor codes"""

import logging
import sys
from datetime import datetime, timezone
from typing import Any, Dict

from pythonjsonlogger import jsonlogger

REDACTED = "[REDACTED]"
SENSITIVE_KEY_PARTS = ("token", "secret", "password", "authorization")
SENSITIVE_KEYS = {"smscode", "googleauthcode", "securitycode"}

SERVICE_NAME = "tropipay-wallet"


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """Custom JSON formatter with timestamp and service metadata"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record["timestamp"] = datetime.now(timezone.utc).isoformat()
        log_record["level"] = record.levelname
        log_record["service"] = SERVICE_NAME


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


def is_sensitive_key(key: Any) -> bool:
    if not isinstance(key, str):
        return False
    lowered = key.lower()
    return lowered in SENSITIVE_KEYS or any(part in lowered for part in SENSITIVE_KEY_PARTS)


def redact(value: Any) -> Any:
    """Copy of ``value`` with every sensitive key's value replaced, recursively"""
    if isinstance(value, dict):
        return {k: REDACTED if is_sensitive_key(k) else redact(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [redact(item) for item in value]
    return value


def log_api_call(
    method: str,
    url: str,
    status_code: int | None,
    duration_ms: float,
    headers: Dict[str, Any] | None = None,
    params: Dict[str, Any] | None = None,
    body: Any = None,
    response: Any = None,
) -> None:
    """Log one remote API exchange; headers and bodies pass through redact()"""
    logging.info(
        f"TropiPay API {method} {url} -> {status_code}",
        extra={
            "step": "remote_api_call",
            "method": method,
            "url": url,
            "status_code": status_code,
            "duration_ms": duration_ms,
            "request_headers": redact(headers or {}),
            "params": redact(params or {}),
            "request_body": redact(body),
            "response_body": redact(response),
        },
    )


def log_transfer(
    step: str,
    outcome: str,
    from_account_id: str,
    amount_minor: int,
    currency: str,
    duration_ms: float,
    user_id: Any = None,
) -> None:
    """Log structured transfer workflow outcome for analysis"""
    logging.info(
        f"Transfer {step} {outcome}",
        extra={
            "user_id": user_id,
            "step": f"transfer_{step}",
            "outcome": outcome,
            "from_account_id": from_account_id,
            "amount_minor": amount_minor,
            "currency": currency,
            "duration_ms": duration_ms,
        },
    )
