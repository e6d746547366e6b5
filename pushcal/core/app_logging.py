"""
Central logging configuration for pushcal.

Installs a console handler that tags every record with the id of the HTTP
request being served and keeps chatty third-party loggers at WARNING.
"""

import logging
import os
from typing import Optional

LOG_FORMAT = "[%(asctime)s] [%(request_id)s] %(levelname)s - %(name)s - %(message)s"

VALID_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")

# third-party loggers and the level they are capped at
QUIET_LOGGERS: dict[str, int] = {
    "aiohttp.access": logging.WARNING,
    "aiohttp.server": logging.WARNING,
    "aiohttp.web": logging.INFO,
    "asyncio": logging.WARNING,
    "urllib3.connectionpool": logging.WARNING,
    "requests.packages.urllib3": logging.WARNING,
    "aiosqlite": logging.WARNING,
    "pywebpush": logging.WARNING,
}


class CorrelationIdFilter(logging.Filter):
    """Stamp ``record.request_id`` so LOG_FORMAT can render it."""

    def filter(self, record: logging.LogRecord) -> bool:
        # deferred: the middleware package imports aiohttp
        from pushcal.api.middleware.correlation_id import get_request_id

        record.request_id = get_request_id()
        return True


def _resolve_level(debug: bool, level_name: Optional[str]) -> int:
    level = logging.DEBUG if debug else logging.INFO
    if not debug and level_name and level_name.upper() in VALID_LEVELS:
        level = getattr(logging, level_name.upper())
    env_level = os.getenv("PUSHCAL_LOG_LEVEL", "").upper()
    if env_level in VALID_LEVELS:
        level = getattr(logging, env_level)
    return level


def _attach_request_id_filter(root_logger: logging.Logger, level: int) -> None:
    if not root_logger.handlers:
        handler = logging.StreamHandler()
        handler.setLevel(level)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        handler.addFilter(CorrelationIdFilter())
        root_logger.addHandler(handler)
        return

    for handler in root_logger.handlers:
        if not any(isinstance(f, CorrelationIdFilter) for f in handler.filters):
            handler.addFilter(CorrelationIdFilter())


def configure_logging(debug_mode: bool = False, level_name: Optional[str] = None) -> None:
    """
    Configure logging for the pushcal process.

    Args:
        debug_mode: Log pushcal modules at DEBUG
        level_name: Root level from config, ignored in debug mode

    Environment Variables:
        PUSHCAL_DEBUG: '1', 'true' or 'yes' forces debug mode
        PUSHCAL_LOG_LEVEL: Root level override (DEBUG, INFO, WARNING, ERROR), wins over both
    """
    debug = debug_mode or os.getenv("PUSHCAL_DEBUG", "").lower() in ("1", "true", "yes")
    level = _resolve_level(debug, level_name)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    _attach_request_id_filter(root_logger, level)

    for logger_name, logger_level in QUIET_LOGGERS.items():
        logging.getLogger(logger_name).setLevel(logger_level)
    logging.getLogger("pushcal").setLevel(logging.DEBUG if debug else logging.INFO)

    if debug:
        root_logger.info("Debug logging enabled for pushcal modules.")
    else:
        root_logger.debug("Production logging configuration applied.")
