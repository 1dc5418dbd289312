"""
Structured logging configuration and utilities

Records emitted while a page renders carry the signed-in user and role
(see `bind_session`), so a log line can be traced back to the browser
session that produced it. Credentials never reach the output.
"""

import logging
import logging.handlers
import json
import traceback
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional
import streamlit as st

from config.app_config import get_config


# Keys never written to log output, whatever logger call carried them
REDACTED_FIELDS = {"password", "token", "bearer_token", "authorization"}

# Attributes every LogRecord has; anything else came in through `extra`
_RECORD_ATTRIBUTES = set(vars(logging.makeLogRecord({}))) | {"message", "asctime", "taskName"}

_session_fields: ContextVar[Dict[str, str]] = ContextVar("log_session_fields", default={})


@contextmanager
def bind_session(**fields):
    """
    Attach session fields (e.g. user id, role, page) to every record logged in the block

    Args:
        **fields: Values stamped on records as `session_<name>`
    """
    token = _session_fields.set({**_session_fields.get(), **fields})
    try:
        yield
    finally:
        _session_fields.reset(token)


class SessionContextFilter(logging.Filter):
    """Copies the bound session fields onto each record"""

    def filter(self, record: logging.LogRecord) -> bool:
        for name, value in _session_fields.get().items():
            attribute = f"session_{name}"
            if not hasattr(record, attribute):
                setattr(record, attribute, value)
        return True


class StructuredFormatter(logging.Formatter):
    """
    One JSON object per record, with `extra` fields nested under "extra"
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
        }

        if record.exc_info and record.exc_info[0] is not None:
            log_data["exception"] = {
                "type": record.exc_info[0].__name__,
                "message": str(record.exc_info[1]),
                "traceback": traceback.format_exception(*record.exc_info)
            }

        extra_fields = {
            key: ("***" if key.lower() in REDACTED_FIELDS else value)
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRIBUTES
        }
        if extra_fields:
            log_data["extra"] = extra_fields

        return json.dumps(log_data, ensure_ascii=False, default=str)


class StreamlitLogHandler(logging.Handler):
    """Shows warnings and errors in the page (development only)"""

    def emit(self, record: logging.LogRecord):
        try:
            if record.levelno >= logging.ERROR:
                st.error(f"🚨 {record.getMessage()}")
            else:
                st.warning(f"⚠️ {record.getMessage()}")
        except Exception:
            self.handleError(record)


def setup_logging() -> logging.Logger:
    """
    Configure the root logger from the application configuration

    Returns:
        logging.Logger: Configured root logger
    """
    config = get_config()
    level = getattr(logging, config.logging.level)
    session_filter = SessionContextFilter()

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    if config.debug:
        # Human-readable format for development
        console_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - %(message)s [%(filename)s:%(lineno)d]'
        ))
    else:
        console_handler.setFormatter(StructuredFormatter())
    console_handler.addFilter(session_filter)
    root_logger.addHandler(console_handler)

    if config.logging.enable_file_logging:
        Path(config.logging.log_file).parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.handlers.RotatingFileHandler(
            config.logging.log_file,
            maxBytes=10*1024*1024,  # 10MB
            backupCount=5
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(StructuredFormatter())
        file_handler.addFilter(session_filter)
        root_logger.addHandler(file_handler)

    # httpx logs every request line at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)

    if config.debug and config.is_development:
        streamlit_handler = StreamlitLogHandler()
        streamlit_handler.setLevel(logging.WARNING)
        root_logger.addHandler(streamlit_handler)

    return root_logger


def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(name)


@contextmanager
def log_execution_time(logger: logging.Logger, operation: str, **extra_fields):
    """
    Log how long a block took; failures are logged as warnings and re-raised

    Args:
        logger: Logger instance
        operation: Description of the operation
        **extra_fields: Additional fields to include in log
    """
    start_time = datetime.now()
    try:
        yield
    except Exception as e:
        logger.warning(f"Failed {operation}: {e}", extra={
            "operation": operation,
            "duration_seconds": (datetime.now() - start_time).total_seconds(),
            "status": "error",
            "error_type": type(e).__name__,
            **extra_fields
        })
        raise

    logger.debug(f"Completed {operation}", extra={
        "operation": operation,
        "duration_seconds": (datetime.now() - start_time).total_seconds(),
        "status": "success",
        **extra_fields
    })


def log_user_interaction(logger: logging.Logger, interaction_type: str, **details):
    """
    Log user interactions for analytics

    Args:
        logger: Logger instance
        interaction_type: Type of interaction (e.g., "feedback_created", "logout")
        **details: Additional interaction details
    """
    logger.info("User interaction", extra={
        "event_type": "user_interaction",
        "interaction_type": interaction_type,
        **details
    })


def log_auth_event(logger: logging.Logger, event_type: str, **details):
    """
    Log authentication state changes

    Args:
        logger: Logger instance
        event_type: Type of event (e.g., "login", "logout", "session_restored")
        **details: Additional event details (never the token itself)
    """
    logger.info(f"Auth event: {event_type}", extra={
        "event_type": "auth_event",
        "auth_event_type": event_type,
        **details
    })


class ErrorTracker:
    """Counts unexpected errors per type and context, logging each with its traceback"""

    def __init__(self, logger: logging.Logger):
        self.logger = logger
        self.error_counts: Dict[str, int] = {}

    def track_error(self, error: Exception, context: str = "", **extra_info):
        error_type = type(error).__name__
        error_key = f"{error_type}:{context}"
        self.error_counts[error_key] = self.error_counts.get(error_key, 0) + 1

        self.logger.error(f"Error in {context}: {error}", extra={
            "event_type": "error",
            "error_type": error_type,
            "context": context,
            "error_count": self.error_counts[error_key],
            **extra_info
        }, exc_info=error)


_logger_setup = False
_error_tracker: Optional[ErrorTracker] = None


def initialize_logging() -> ErrorTracker:
    """
    Configure logging once per process

    Returns:
        ErrorTracker: Global error tracker instance
    """
    global _logger_setup, _error_tracker

    if not _logger_setup:
        setup_logging()
        _logger_setup = True

    if _error_tracker is None:
        _error_tracker = ErrorTracker(logging.getLogger())

    return _error_tracker
