"""
Centralized logging module for the RotaClock backend.

Rules:
- Structured logging suitable for Grafana/Loki/ELK
- Appropriate log levels (info, warning, error)
- NEVER logs passwords, hashes, or full request bodies
- Security-sensitive actions emit structured logs with user_id, tenant_id, action, result, timestamp
- Requests authenticated through the demo identity are always marked as such
"""
import logging
import json
from typing import Any, Dict, Optional
from datetime import datetime, timezone

from core.config import settings

logger = logging.getLogger("rotaclock")
logger.setLevel(settings.LOG_LEVEL.upper())

_handler = logging.StreamHandler()
_handler.setLevel(logging.DEBUG)


class JSONFormatter(logging.Formatter):
    """Formatter that outputs structured JSON logs."""

    EXTRA_FIELDS = ("user_id", "tenant_id", "action", "result", "meta")

    def format(self, record: logging.LogRecord) -> str:
        log_data: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for field in self.EXTRA_FIELDS:
            if hasattr(record, field):
                log_data[field] = getattr(record, field)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


_handler.setFormatter(JSONFormatter())
logger.addHandler(_handler)

# Prevent duplicate logs
logger.propagate = False


def log_security_event(
    action: str,
    result: str,
    user_id: Optional[str] = None,
    tenant_id: Optional[str] = None,
    meta: Optional[Dict[str, Any]] = None,
    level: str = "info",
    demo: bool = False,
) -> None:
    """
    Log security-sensitive actions (identity resolution, role changes,
    deactivations, approvals, payroll adjustments).

    Args:
        action: Action name (e.g., "identity_resolve", "role_change")
        result: Result status (e.g., "success", "failure", "denied")
        user_id: Acting employee id (optional)
        tenant_id: Tenant id (optional)
        meta: Additional metadata dict (optional)
        level: Log level ("info", "warning", "error")
        demo: True when the actor was authenticated through the demo identity
    """
    log_method = getattr(logger, level.lower(), logger.info)
    extra: Dict[str, Any] = {
        "action": action,
        "result": result,
    }
    if user_id:
        extra["user_id"] = user_id
    if tenant_id:
        extra["tenant_id"] = tenant_id
    if meta or demo:
        extra["meta"] = dict(meta or {})
        if demo:
            extra["meta"]["demo_identity"] = True

    log_method("Security event", extra=extra)
