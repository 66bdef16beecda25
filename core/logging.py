"""
Logging Setup

One stdout handler for the whole process; every module logs through a child
of the "pricetracker" logger.

Usage:
    from core.logging import get_logger

    logger = get_logger(__name__)
    logger.warning("Kraken pair missing for SOL")

Levels:
    DEBUG    - transport request/response tracing
    INFO     - lifecycle (startup, currency switch, refresher start/stop)
    WARNING  - one source or asset fell back to an unresolved quote
    ERROR    - a whole refresh round failed

LOG_LEVEL in the environment / .env selects the level at import time.
"""

import logging
import sys
from typing import Any, Dict, Optional

from core.config import settings


ROOT_LOGGER = "pricetracker"
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def _level(name: str) -> int:
    return getattr(logging, name.upper(), logging.INFO)


def setup_logging(log_level: str = "INFO", log_format: str = LOG_FORMAT) -> logging.Logger:
    """
    Install the stdout handler and return the application logger.

    Example:
        >>> logger = setup_logging("DEBUG")
        >>> logger.info("Application started")
        2024-01-01 12:00:00 [INFO] pricetracker Application started
    """
    logging.basicConfig(
        level=_level(log_level),
        format=log_format,
        datefmt=DATE_FORMAT,
        stream=sys.stdout,
        force=True
    )
    app_logger = logging.getLogger(ROOT_LOGGER)
    app_logger.setLevel(_level(log_level))
    return app_logger


logger = setup_logging(settings.log_level)


def get_logger(name: str) -> logging.Logger:
    """
    Child logger, e.g. get_logger("exchanges.kraken") -> "pricetracker.exchanges.kraken".
    """
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")


def set_log_level(level: str) -> None:
    """Change the level at runtime (application and root logger)."""
    logger.setLevel(_level(level))
    logging.getLogger().setLevel(_level(level))


# ============================================
# Transport Tracing
# ============================================

def log_api_request(source: str, url: str, params: Optional[Dict[str, Any]] = None) -> None:
    """
    Example:
        >>> log_api_request("api.kraken.com", "https://api.kraken.com/0/public/Ticker", {"pair": "XBTUSD"})
        [DEBUG] GET api.kraken.com https://api.kraken.com/0/public/Ticker params={'pair': 'XBTUSD'}
    """
    suffix = f" params={params}" if params else ""
    logger.debug(f"GET {source} {url}{suffix}")


def log_api_response(source: str, url: str, status: int, response_time: Optional[float] = None) -> None:
    suffix = f" in {response_time:.3f}s" if response_time is not None else ""
    logger.debug(f"{status} {source} {url}{suffix}")
