"""
Unified Logging Configuration

This module sets up the logging used by the whole client library.
All modules should import and use the logger from this module instead of
using print() statements.

Two channels exist:
    - 'gatewayclient'              : regular library messages (INFO, WARNING, ...)
    - 'gatewayclient.diagnostics'  : request / response / error dumps, disabled by default

Usage:
    from core.logging import logger, get_logger

    logger.info("General informational messages")

    log = get_logger(__name__)
    log.warning("Could not retrieve pairs for 'poloniex'")

Diagnostics:
    The diagnostics channel is toggled globally, either with the
    GATEWAY_DIAGNOSTICS setting in .env or at runtime:

    >>> from core.logging import enable_diagnostics
    >>> enable_diagnostics(True)

    Toggling it never changes how requests behave, only what gets logged.

Configuration:
    Log level is controlled by the LOG_LEVEL setting in .env file.
    Applications embedding the client call setup_logging() to get console output.
"""

import json
import logging
import sys
from typing import Any, Optional


LOGGER_NAME = "gatewayclient"
DIAGNOSTICS_LOGGER_NAME = f"{LOGGER_NAME}.diagnostics"


def setup_logging(
    log_level: str = "INFO",
    log_format: Optional[str] = None,
    include_timestamp: bool = True,
    include_module: bool = True
) -> logging.Logger:
    """
    Configure console output and return the library logger.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        log_format: Custom log format string (uses default if None)
        include_timestamp: Include timestamp in log messages
        include_module: Include module name in log messages

    Returns:
        logging.Logger: Configured logger instance

    Example:
        >>> logger = setup_logging(log_level="DEBUG")
        >>> logger.info("Client started")
        2024-01-01 12:00:00 [INFO] gatewayclient: Client started
    """
    if log_format is None:
        format_parts = []

        if include_timestamp:
            format_parts.append("%(asctime)s")

        format_parts.append("[%(levelname)s]")

        if include_module:
            format_parts.append("%(name)s")

        format_parts.append("%(message)s")

        log_format = " ".join(format_parts)

    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format=log_format,
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
        force=True
    )

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    return logger


# ============================================
# Initialize Loggers with Settings
# ============================================

try:
    from core.config import settings
    log_level = settings.log_level
    diagnostics_on = settings.gateway_diagnostics
except ImportError:
    log_level = "INFO"
    diagnostics_on = False

# Library logger: no output unless the application configures handlers
logger = logging.getLogger(LOGGER_NAME)
logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))
logger.addHandler(logging.NullHandler())

diagnostics_logger = logging.getLogger(DIAGNOSTICS_LOGGER_NAME)


# ============================================
# Convenience Functions
# ============================================

def get_logger(name: str) -> logging.Logger:
    """
    Get a logger for a specific module or component.

    Args:
        name: Name for the logger (typically __name__)

    Returns:
        logging.Logger: Logger instance for the specified name

    Example:
        # In gateway/pair_search.py:
        from core.logging import get_logger
        logger = get_logger(__name__)  # Creates "gatewayclient.gateway.pair_search"
    """
    return logging.getLogger(f"{LOGGER_NAME}.{name}")


def set_log_level(level: str) -> None:
    """
    Change the library log level at runtime.

    Args:
        level: New log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    """
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))


def enable_diagnostics(flag: bool = True) -> None:
    """
    Turn the request/response diagnostics channel on or off.

    Args:
        flag: True to log every request, response and error
    """
    diagnostics_logger.setLevel(logging.DEBUG if flag else logging.CRITICAL + 1)
    diagnostics_logger.disabled = not flag


def diagnostics_enabled() -> bool:
    """Whether the diagnostics channel is currently on."""
    return not diagnostics_logger.disabled and diagnostics_logger.isEnabledFor(logging.DEBUG)


enable_diagnostics(diagnostics_on)


# ============================================
# Log Helper Functions
# ============================================

def _dump(data: Any) -> str:
    try:
        return json.dumps(data, default=str)
    except (TypeError, ValueError):
        return repr(data)


def log_api_request(method: str, url: str, params: Optional[dict] = None) -> None:
    """
    Log an outgoing request on the diagnostics channel.

    Example:
        >>> log_api_request("GET", "http://127.0.0.1:8000/exchanges", {"currency": "BTC"})
        [DEBUG] gatewayclient.diagnostics REQ: GET http://127.0.0.1:8000/exchanges {"currency": "BTC"}
    """
    if diagnostics_enabled():
        diagnostics_logger.debug(f"REQ: {method} {url} {_dump(params or {})}")


def log_api_response(data: Any) -> None:
    """Log a decoded response body on the diagnostics channel."""
    if diagnostics_enabled():
        diagnostics_logger.debug(f"RES: {_dump(data)}")


def log_api_error(error: Any) -> None:
    """Log a transport error or a gateway error body on the diagnostics channel."""
    if diagnostics_enabled():
        diagnostics_logger.debug(f"ERR: {_dump(error)}")
