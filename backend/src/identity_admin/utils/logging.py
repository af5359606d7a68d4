"""Structured logging for the identity Lambdas.

Log lines are single JSON objects so CloudWatch Logs Insights can filter
on ``request_id`` and ``operation``.

SECURITY NOTES:
- Email addresses and user names go through mask_email()/mask_pii()
- Passwords, confirmation codes and tokens are never logged
"""

from __future__ import annotations

import json
import logging
import sys
import traceback
from contextvars import ContextVar
from datetime import datetime
from datetime import timezone
from typing import Any
from typing import MutableMapping
from typing import Optional


def mask_email(email: str) -> str:
    """Mask an email address for safe logging.

    Examples:
        >>> mask_email("ann.lee@example.com")
        'an***@***.com'
        >>> mask_email("a@b.co")
        'a***@***.co'
    """
    if not email or "@" not in email:
        return "***"

    local, domain = email.rsplit("@", 1)
    tld = domain.rsplit(".", 1)[-1] if "." in domain else ""
    visible_local = local[:2] if len(local) > 2 else local[:1]

    return f"{visible_local}***@***.{tld}" if tld else f"{visible_local}***@***"


def mask_pii(value: str, visible_chars: int = 4) -> str:
    """Mask a user name or other identifier, keeping a short prefix."""
    if not value:
        return "***"
    if len(value) <= visible_chars:
        return value[0] + "***"
    return value[:visible_chars] + "***"


request_id: ContextVar[str] = ContextVar("request_id", default="")
operation: ContextVar[str] = ContextVar("operation", default="")


class StructuredLogFormatter(logging.Formatter):
    """Render log records as JSON with the current invocation context."""

    def format(self, record: logging.LogRecord) -> str:
        log_data: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "source": {
                "file": record.filename,
                "line": record.lineno,
                "function": record.funcName,
            },
        }

        req_id = request_id.get()
        if req_id:
            log_data["request_id"] = req_id

        op_name = operation.get()
        if op_name:
            log_data["operation"] = op_name

        if record.exc_info:
            exc_type, exc_value, _tb = record.exc_info
            log_data["exception"] = {
                "type": exc_type.__name__ if exc_type else None,
                "message": str(exc_value) if exc_value else None,
                "traceback": traceback.format_exception(*record.exc_info),
            }

        if isinstance(getattr(record, "context", None), dict):
            log_data["extra"] = record.context

        return json.dumps(log_data, default=str)


class ContextLogger(logging.LoggerAdapter):
    """Logger adapter that nests ``extra`` under a single ``context`` key."""

    def process(
        self,
        msg: str,
        kwargs: MutableMapping[str, Any],
    ) -> tuple[str, MutableMapping[str, Any]]:
        context: dict[str, Any] = dict(self.extra or {})
        context.update(kwargs.pop("extra", None) or {})
        if context:
            kwargs["extra"] = {"context": context}
        return msg, kwargs


def configure_logging(level: Optional[str] = None) -> None:
    """Install the JSON formatter on the root logger.

    Args:
        level: Log level name. Defaults to INFO.
    """
    root_logger = logging.getLogger()
    root_logger.setLevel((level or "INFO").upper())

    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(StructuredLogFormatter())
    root_logger.addHandler(handler)

    for noisy in ("boto3", "botocore", "urllib3"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def get_logger(name: str, **extra: Any) -> ContextLogger:
    """Return a context-aware logger for *name*."""
    return ContextLogger(logging.getLogger(name), extra)


def set_request_context(
    req_id: Optional[str] = None,
    operation_name: Optional[str] = None,
) -> None:
    """Attach the invocation's request id and operation to every log line."""
    if req_id:
        request_id.set(req_id)
    if operation_name:
        operation.set(operation_name)


def clear_request_context() -> None:
    """Reset invocation context once a request completes."""
    request_id.set("")
    operation.set("")


def log_response(
    logger: ContextLogger,
    status_code: int,
    duration_ms: Optional[float] = None,
) -> None:
    """Log the outcome of an invocation."""
    context: dict[str, Any] = {"status_code": status_code}
    if duration_ms is not None:
        context["duration_ms"] = round(duration_ms, 2)

    level = logging.INFO if status_code < 400 else logging.WARNING
    logger.log(level, "Lambda response", extra=context)
