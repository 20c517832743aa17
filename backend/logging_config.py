#!/usr/bin/env python3
"""
Centralized logging configuration for the channel sources backend.

Every module obtains its logger through setup_logging(__name__) so that the
DEBUG_MODE environment variable controls verbosity in one place.
"""

import logging
import os
import sys
from typing import Optional


class HTTPLogFilter(logging.Filter):
    """Filter out werkzeug access lines and raw HTTP chatter."""

    def filter(self, record):
        message = record.getMessage().lower()
        http_indicators = [
            'http request',
            'http response',
            'get /',
            'post /',
            '" with',
            '- - [',  # Common HTTP access log format
            'werkzeug',
        ]
        return not any(indicator in message for indicator in http_indicators)


def is_debug_mode() -> bool:
    """Return True when DEBUG_MODE is set to a truthy value."""
    return os.getenv('DEBUG_MODE', 'false').lower() in ('true', '1', 'yes', 'on')


def setup_logging(module_name: Optional[str] = None) -> logging.Logger:
    """
    Configure logging with DEBUG_MODE support.

    Args:
        module_name: Name of the module for the logger. If None, returns root logger.

    Returns:
        logging.Logger: Configured logger instance.
    """
    log_level = logging.DEBUG if is_debug_mode() else logging.INFO

    if not logging.root.handlers:
        logging.basicConfig(
            level=log_level,
            format='%(asctime)s - %(levelname)s - [%(name)s:%(funcName)s:%(lineno)d] - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S',
            stream=sys.stdout
        )

        for handler in logging.root.handlers:
            handler.addFilter(HTTPLogFilter())
    else:
        logging.root.setLevel(log_level)
        for handler in logging.root.handlers:
            handler.setLevel(log_level)

    logger = logging.getLogger(module_name) if module_name else logging.root
    logger.setLevel(log_level)

    return logger


def log_exception(logger: logging.Logger, exc: Exception, context: str = ""):
    """
    Log an exception with context, with a stack trace in debug mode.

    Args:
        logger: Logger instance to use
        exc: Exception to log
        context: Where/why the exception occurred
    """
    msg = f"Exception in {context}: {type(exc).__name__}: {exc}" if context else f"{type(exc).__name__}: {exc}"

    if logger.isEnabledFor(logging.DEBUG):
        logger.debug(msg, exc_info=True)
    else:
        logger.error(msg)


def log_api_request(logger: logging.Logger, method: str, url: str, **kwargs):
    """
    Log an outgoing HTTP request (only in debug mode).

    Args:
        logger: Logger instance to use
        method: HTTP method (GET, POST, etc.)
        url: Request URL
        **kwargs: Additional request details; headers, auth and bodies are redacted
    """
    if logger.isEnabledFor(logging.DEBUG):
        sanitized_kwargs = {}
        for key, value in kwargs.items():
            if key in ('headers', 'auth'):
                sanitized_kwargs[key] = '<redacted>'
            elif key in ('data', 'json'):
                if isinstance(value, dict):
                    sanitized_kwargs[key] = f"<dict with {len(value)} keys>"
                else:
                    sanitized_kwargs[key] = f"<{type(value).__name__}>"
            else:
                sanitized_kwargs[key] = value

        extras = ', '.join(f"{k}={v}" for k, v in sanitized_kwargs.items())
        logger.debug(f"→ {method} {url} {extras}".rstrip())


def log_api_response(logger: logging.Logger, method: str, url: str, status_code: int, elapsed_time: Optional[float] = None):
    """Log an HTTP response status (only in debug mode)."""
    if logger.isEnabledFor(logging.DEBUG):
        msg = f"← {method} {url} → {status_code}"
        if elapsed_time is not None:
            msg += f" ({elapsed_time:.3f}s)"
        logger.debug(msg)


def log_state_change(logger: logging.Logger, entity: str, old_state, new_state, reason: str = ""):
    """
    Log a state change (only in debug mode).

    Args:
        logger: Logger instance to use
        entity: What is changing state (e.g., "source:main")
        old_state: Previous state
        new_state: New state
        reason: Why the state changed (optional)
    """
    if logger.isEnabledFor(logging.DEBUG):
        msg = f"State change: {entity} {old_state} → {new_state}"
        if reason:
            msg += f" ({reason})"
        logger.debug(msg)
