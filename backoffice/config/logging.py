"""
Logging configuration for the institute back-office.

Console output is colored in development, plain text or JSON elsewhere
(LOG_FORMAT). Setting LOG_FILE adds a rotating file that always receives
JSON records.
"""

import logging
import logging.config
import os
from datetime import datetime, timezone
from typing import Any, Dict

from pythonjsonlogger import jsonlogger

from backoffice.config.settings import settings

# Extra attributes the services attach to records (see BaseService)
CONTEXT_FIELDS = ('request_id', 'user_id', 'role', 'operation', 'entity_ref', 'exception_type')


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """JSON records carrying the request and service-operation context"""

    def add_fields(self, log_record: Dict[str, Any], record: logging.LogRecord, message_dict: Dict[str, Any]):
        super().add_fields(log_record, record, message_dict)

        log_record['timestamp'] = datetime.now(timezone.utc).isoformat()
        log_record['level'] = record.levelname
        log_record['logger'] = record.name
        log_record['environment'] = settings.ENVIRONMENT

        for name in CONTEXT_FIELDS:
            value = getattr(record, name, None)
            if value is not None:
                log_record[name] = value

        if record.exc_info:
            log_record['exception'] = {
                'type': record.exc_info[0].__name__,
                'message': str(record.exc_info[1]),
                'traceback': self.formatException(record.exc_info),
            }


def _console_formatter() -> str:
    if settings.LOG_FORMAT == 'json':
        return 'json'
    return 'colored' if settings.is_development() else 'standard'


def build_logging_config() -> Dict[str, Any]:
    """dictConfig for the current settings"""
    app_level = 'DEBUG' if settings.DEBUG else settings.LOG_LEVEL
    handlers: Dict[str, Dict[str, Any]] = {
        'console': {
            'level': app_level,
            'class': 'logging.StreamHandler',
            'formatter': _console_formatter(),
        },
    }
    if settings.LOG_FILE:
        log_dir = os.path.dirname(settings.LOG_FILE)
        if log_dir:
            os.makedirs(log_dir, exist_ok=True)
        handlers['file'] = {
            'level': settings.LOG_LEVEL,
            'class': 'logging.handlers.RotatingFileHandler',
            'filename': settings.LOG_FILE,
            'maxBytes': 10485760,  # 10MB
            'backupCount': 5,
            'formatter': 'json',
            'encoding': 'utf8',
        }
    names = list(handlers)

    return {
        'version': 1,
        'disable_existing_loggers': False,
        'formatters': {
            'standard': {
                'format': '%(asctime)s [%(levelname)s] %(name)s: %(message)s',
            },
            'colored': {
                '()': 'colorlog.ColoredFormatter',
                'format': '%(log_color)s%(asctime)s [%(levelname)s] %(name)s: %(message)s',
                'log_colors': {
                    'DEBUG': 'cyan',
                    'INFO': 'green',
                    'WARNING': 'yellow',
                    'ERROR': 'red',
                    'CRITICAL': 'red,bg_white',
                },
            },
            'json': {
                '()': CustomJsonFormatter,
                'format': '%(timestamp)s %(level)s %(logger)s %(message)s',
            },
        },
        'handlers': handlers,
        'loggers': {
            '': {'handlers': names, 'level': settings.LOG_LEVEL},
            'backoffice': {'handlers': names, 'level': app_level, 'propagate': False},
            'sqlalchemy.engine': {
                'handlers': names,
                'level': 'INFO' if settings.DB_ECHO else 'WARNING',
                'propagate': False,
            },
            'uvicorn.access': {'handlers': ['console'], 'level': 'WARNING', 'propagate': False},
        },
    }


def setup_logging() -> None:
    """Apply the logging configuration"""
    logging.config.dictConfig(build_logging_config())
