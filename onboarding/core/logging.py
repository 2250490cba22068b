"""
Logging setup for the onboarding service.

Two channels share one handler configuration:

* ``get_logger`` returns a stdlib logger wrapped in ``LoggerAdapter`` that
  carries per-component context (``service=...``) into every record's
  ``extra``; records are rendered as JSON by python-json-logger or as
  plain text.
* ``get_audit_logger`` returns a structlog logger for events an operator
  must be able to reconstruct later: signature mismatches, document and
  hostel adjudications, applied payments.

Both channels stamp the current request id and caller (set by the request
middleware and the auth dependency) and mask secrets before rendering.
"""

import logging
import logging.handlers
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

import structlog
from pythonjsonlogger import jsonlogger

from onboarding.config.settings import settings

SERVICE_NAME = "student-onboarding"

request_id: ContextVar[Optional[str]] = ContextVar("request_id", default=None)
caller_id: ContextVar[Optional[str]] = ContextVar("caller_id", default=None)
caller_role: ContextVar[Optional[str]] = ContextVar("caller_role", default=None)

# Key fragments whose values never reach an application log line. Razorpay
# order and payment ids stay visible. The audit channel also keeps
# ``*_signature`` keys: a mismatch record carries the expected and the
# received signature.
MASKED_KEY_FRAGMENTS = (
    "password", "secret", "token", "api_key", "authorization",
    "signature", "credentials", "cookie",
)
AUDIT_VISIBLE_SUFFIXES = ("signature",)
AUDIT_KEYWORDS = ("signature", "tamper", "approve", "reject", "payment applied")

_MASK = "[MASKED]"
_HANDLER_MARK = "_onboarding_handler"


def bind_caller(user: Optional[str], role: Optional[str] = None) -> None:
    """Attach the authenticated caller to log records for the current request."""
    caller_id.set(user)
    caller_role.set(role)


def _current_context() -> Dict[str, str]:
    context = {}
    for key, var in (("request_id", request_id), ("caller_id", caller_id), ("caller_role", caller_role)):
        value = var.get()
        if value:
            context[key] = value
    return context


def _is_masked(key: str, visible: Tuple[str, ...] = ()) -> bool:
    lowered = key.lower()
    if visible and lowered.endswith(visible):
        return False
    return any(fragment in lowered for fragment in MASKED_KEY_FRAGMENTS)


def mask_secrets(values: Dict[str, Any], visible: Tuple[str, ...] = ()) -> Dict[str, Any]:
    """
    Return a copy with secret-looking keys masked, recursing into dicts.
    Keys ending in one of ``visible`` are kept as is.
    """
    masked = {}
    for key, value in values.items():
        if _is_masked(str(key), visible):
            masked[key] = _MASK
        elif isinstance(value, dict):
            masked[key] = mask_secrets(value, visible)
        else:
            masked[key] = value
    return masked


# ----- #
# structlog processors (audit channel)
# ----- #

def add_service_context(logger, method_name, event_dict):
    event_dict.update(_current_context())
    event_dict.setdefault("timestamp", datetime.now(timezone.utc).isoformat())
    event_dict["service"] = SERVICE_NAME
    event_dict["environment"] = settings.ENVIRONMENT
    return event_dict


def flag_audit_events(logger, method_name, event_dict):
    event = str(event_dict.get("event", "")).lower()
    if any(keyword in event for keyword in AUDIT_KEYWORDS):
        event_dict["audit"] = True
    return mask_secrets(event_dict, visible=AUDIT_VISIBLE_SUFFIXES)


# ----- #
# stdlib handlers (application channel)
# ----- #

class OnboardingJsonFormatter(jsonlogger.JsonFormatter):
    """JSON lines with level, origin and request context."""

    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        log_record["level"] = record.levelname
        log_record["logger"] = record.name
        log_record["origin"] = f"{record.module}.{record.funcName}:{record.lineno}"
        log_record["app"] = SERVICE_NAME
        for key, value in _current_context().items():
            log_record.setdefault(key, value)
        for key in list(log_record):
            if _is_masked(key):
                log_record[key] = _MASK


def _build_formatter() -> logging.Formatter:
    if settings.LOG_FORMAT == "json":
        return OnboardingJsonFormatter("%(asctime)s %(name)s %(levelname)s %(message)s")
    return logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")


def _install_handler(root: logging.Logger, handler: logging.Handler, formatter: logging.Formatter) -> None:
    handler.setLevel(settings.LOG_LEVEL)
    handler.setFormatter(formatter)
    setattr(handler, _HANDLER_MARK, True)
    root.addHandler(handler)


def configure_handlers() -> None:
    root = logging.getLogger()
    root.setLevel(settings.LOG_LEVEL)

    # Reconfiguring replaces only what this module installed
    for handler in list(root.handlers):
        if getattr(handler, _HANDLER_MARK, False):
            root.removeHandler(handler)

    formatter = _build_formatter()
    _install_handler(root, logging.StreamHandler(sys.stdout), formatter)

    if settings.LOG_FILE:
        log_path = Path(settings.LOG_FILE)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        rotating = logging.handlers.RotatingFileHandler(
            log_path, maxBytes=10 * 1024 * 1024, backupCount=5
        )
        _install_handler(root, rotating, formatter)

    for noisy in ("uvicorn.access", "sqlalchemy.engine", "httpx", "urllib3", "google"):
        logging.getLogger(noisy).setLevel(logging.WARNING)


def configure_structlog() -> None:
    renderer = (
        structlog.processors.JSONRenderer()
        if settings.LOG_FORMAT == "json"
        else structlog.processors.KeyValueRenderer(key_order=["event"], sort_keys=True)
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            add_service_context,
            flag_audit_events,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )


class LoggerAdapter:
    """Stdlib logger plus context merged into every record's ``extra``."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger
        self._context: Dict[str, Any] = {}

    def add_context(self, **kwargs) -> "LoggerAdapter":
        self._context.update(kwargs)
        return self

    def _log(self, level: int, message: str, *args, **kwargs):
        extra = dict(self._context)
        extra.update(kwargs.get("extra") or {})
        kwargs["extra"] = extra
        self.logger.log(level, message, *args, **kwargs)

    def debug(self, message: str, *args, **kwargs):
        self._log(logging.DEBUG, message, *args, **kwargs)

    def info(self, message: str, *args, **kwargs):
        self._log(logging.INFO, message, *args, **kwargs)

    def warning(self, message: str, *args, **kwargs):
        self._log(logging.WARNING, message, *args, **kwargs)

    def error(self, message: str, *args, **kwargs):
        self._log(logging.ERROR, message, *args, **kwargs)


def get_logger(name: Optional[str] = None) -> LoggerAdapter:
    return LoggerAdapter(logging.getLogger(name or "onboarding"))


def get_audit_logger():
    """Structlog logger for tamper-relevant and adjudication events."""
    return structlog.get_logger("onboarding.audit")


def setup_logging():
    """Configure both channels; safe to call more than once."""
    if settings.ENABLE_STRUCTURED_LOGGING:
        configure_structlog()
    configure_handlers()

    get_logger(__name__).info(
        "Logging configured",
        extra={
            "log_level": settings.LOG_LEVEL,
            "log_format": settings.LOG_FORMAT,
            "structured": settings.ENABLE_STRUCTURED_LOGGING,
        },
    )


__all__ = [
    "LoggerAdapter",
    "bind_caller",
    "get_audit_logger",
    "get_logger",
    "mask_secrets",
    "request_id",
    "setup_logging",
]
