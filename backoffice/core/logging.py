"""
Logging utilities.

Two kinds of loggers are handed out:

- `get_logger(name)` returns a stdlib-backed adapter used for diagnostics.
  Every record carries the current request id.
- `get_audit_logger()` returns a structlog logger for the audit trail:
  completed mutations, rejected logins and permission denials. Its
  events are enriched with the request and user context and have
  credentials masked before rendering.
"""

import logging
from contextvars import ContextVar
from typing import Any, Dict, Optional

import structlog

from backoffice.config.logging import setup_logging
from backoffice.config.settings import settings

AUDIT_LOGGER_NAME = 'backoffice.audit'

# Request-scoped values set by the middleware and the auth dependency
request_id: ContextVar[Optional[str]] = ContextVar('request_id', default=None)
user_id: ContextVar[Optional[str]] = ContextVar('user_id', default=None)


class RequestContextProcessor:
    """Stamp audit events with the request, the acting user and the environment"""

    def __call__(self, logger, method_name, event_dict):
        req_id = request_id.get()
        if req_id:
            event_dict.setdefault('request_id', req_id)

        uid = user_id.get()
        if uid:
            event_dict.setdefault('user_id', uid)

        event_dict['environment'] = settings.ENVIRONMENT
        return event_dict


class SensitiveDataProcessor:
    """Mask credentials anywhere in the event"""

    SENSITIVE_KEYS = ('password', 'token', 'secret', 'authorization', 'cookie')
    MASK = '[REDACTED]'

    def __call__(self, logger, method_name, event_dict):
        self._mask(event_dict)
        return event_dict

    def _mask(self, data: Dict[str, Any]) -> None:
        for key, value in list(data.items()):
            if any(sensitive in key.lower() for sensitive in self.SENSITIVE_KEYS):
                data[key] = self.MASK
            elif isinstance(value, dict):
                self._mask(value)


def configure_logging() -> None:
    """Configure stdlib handlers first, then structlog on top of them"""
    setup_logging()
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("multipart").setLevel(logging.WARNING)

    processors = [
        structlog.stdlib.filter_by_level,
        RequestContextProcessor(),
        SensitiveDataProcessor(),
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]
    if settings.LOG_FORMAT == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.processors.KeyValueRenderer(key_order=['event', 'user_id']))

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )


def get_audit_logger(**initial_values: Any):
    return structlog.get_logger(AUDIT_LOGGER_NAME, **initial_values)


class LoggerAdapter:
    """Logger adapter that attaches the current request id to every record"""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def _log(self, level: int, message: str, *args, **kwargs):
        extra = dict(kwargs.get('extra') or {})
        req_id = request_id.get()
        if req_id and 'request_id' not in extra:
            extra['request_id'] = req_id
        kwargs['extra'] = extra

        self.logger.log(level, message, *args, **kwargs)

    def debug(self, message: str, *args, **kwargs):
        self._log(logging.DEBUG, message, *args, **kwargs)

    def info(self, message: str, *args, **kwargs):
        self._log(logging.INFO, message, *args, **kwargs)

    def warning(self, message: str, *args, **kwargs):
        self._log(logging.WARNING, message, *args, **kwargs)

    def error(self, message: str, *args, **kwargs):
        self._log(logging.ERROR, message, *args, **kwargs)


def get_logger(name: str) -> LoggerAdapter:
    """Get a diagnostics logger for a module or service class."""
    return LoggerAdapter(logging.getLogger(name))
