import json
import logging
import logging.config
from datetime import datetime, timezone
from typing import Any, Optional

from app.core.context import get_request_id, get_user_id
from app.core.settings import settings

AUDIT_LOGGER = "app.audit"
REDACTED = "[redacted]"
SENSITIVE_FIELDS = frozenset({"password", "token", "session_token", "otp", "code", "access_token"})


class RequestContextFilter(logging.Filter):
    """Stamp each record with the current request id and user id."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = get_request_id()
        record.user_id = get_user_id()
        return True


class JsonFormatter(logging.Formatter):
    def __init__(self, stream_label: str = "app") -> None:
        super().__init__()
        self.stream_label = stream_label

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "ts": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "stream": self.stream_label,
            "logger": record.name,
            "msg": record.getMessage(),
            "request_id": getattr(record, "request_id", "-"),
            "user_id": getattr(record, "user_id", "-"),
        }
        event = getattr(record, "audit", None)
        if isinstance(event, dict):
            payload["audit"] = event
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


def build_logging_config(level: str) -> dict[str, Any]:
    def stream_handler(formatter: str) -> dict[str, Any]:
        return {
            "class": "logging.StreamHandler",
            "level": level,
            "formatter": formatter,
            "filters": ["request_context"],
            "stream": "ext://sys.stdout",
        }

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "filters": {"request_context": {"()": RequestContextFilter}},
        "formatters": {
            "json": {"()": JsonFormatter, "stream_label": "app"},
            "audit_json": {"()": JsonFormatter, "stream_label": "audit"},
        },
        "handlers": {"default": stream_handler("json"), "audit": stream_handler("audit_json")},
        "loggers": {
            "": {"handlers": ["default"], "level": level, "propagate": False},
            AUDIT_LOGGER: {"handlers": ["audit"], "level": "INFO", "propagate": False},
            **{
                name: {"handlers": ["default"], "level": level, "propagate": False}
                for name in ("uvicorn", "uvicorn.error", "uvicorn.access")
            },
        },
    }


def configure_logging(level: Optional[str] = None) -> None:
    log_level = (level or settings.log_level).upper()
    logging.config.dictConfig(build_logging_config(log_level))
    logging.getLogger(__name__).info("Logging configured for environment=%s", settings.environment)


def get_audit_logger() -> logging.Logger:
    return logging.getLogger(AUDIT_LOGGER)


def redact(fields: dict[str, Any]) -> dict[str, Any]:
    return {key: REDACTED if key in SENSITIVE_FIELDS else value for key, value in fields.items()}


def audit(event: str, **fields: Any) -> None:
    """Write one security-relevant event to the audit stream.

    Credential material passed by mistake is replaced before it reaches a handler.
    """
    get_audit_logger().info(event, extra={"audit": {"event": event, **redact(fields)}})
