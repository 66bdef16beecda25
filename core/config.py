"""
Settings

Everything tunable per deployment comes from environment variables or a
.env file in the working directory (names are case-insensitive).

    KRAKEN_BASE_URL / COINBASE_BASE_URL / BINANCE_BASE_URL
    COINBASE_PRICE_TYPE          spot | buy | sell
    DEFAULT_CURRENCY             USD | EUR
    REFRESH_INTERVAL_SECONDS     timer period, 30 by default
    REQUEST_TIMEOUT              per-request bound, 10 by default
    APP_HOST / APP_PORT / LOG_LEVEL / CORS_ORIGINS

Assets, sources, the reference price table and the EUR/USD rate are fixed
in code (core.schemas, core.reference_prices).

Usage:
    from core.config import settings

    settings.refresh_interval_seconds  # 30.0
"""

from typing import List

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


PRICE_TYPES = ("spot", "buy", "sell")
LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class Settings(BaseSettings):

    model_config = SettingsConfigDict(env_file=".env", extra="ignore", case_sensitive=False)

    # ============================================
    # Price Sources
    # ============================================

    kraken_base_url: str = Field(default="https://api.kraken.com", description="Kraken public REST API")
    coinbase_base_url: str = Field(default="https://api.coinbase.com", description="Coinbase v2 REST API")
    coinbase_price_type: str = Field(default="spot", description="Coinbase price endpoint (spot, buy, sell)")
    binance_base_url: str = Field(default="https://api.binance.com", description="Binance spot REST API")

    # ============================================
    # Refresh
    # ============================================

    default_currency: str = Field(default="USD", description="Currency of the first round (USD or EUR)")
    refresh_interval_seconds: float = Field(default=30.0, description="Seconds between automatic rounds")
    request_timeout: float = Field(default=10.0, description="Upper bound for one HTTP request, seconds")

    # ============================================
    # Server
    # ============================================

    app_host: str = "0.0.0.0"
    app_port: int = 8000
    log_level: str = "INFO"
    cors_origins: str = Field(
        default="http://localhost:3000,http://localhost:5173",
        description="Comma-separated allowed CORS origins"
    )

    @property
    def cors_origins_list(self) -> List[str]:
        """
        Example:
            >>> Settings(cors_origins="http://a.test, http://b.test").cors_origins_list
            ['http://a.test', 'http://b.test']
        """
        return [origin.strip() for origin in self.cors_origins.split(",") if origin.strip()]


settings = Settings()


def _require(condition: bool, message: str) -> None:
    if not condition:
        raise ValueError(message)


def validate_configuration() -> None:
    """
    Reject unusable settings before the refresher starts, then log the
    effective configuration.

    Raises:
        ValueError: naming the offending variable
    """
    # core.logging reads settings at import time, so import it lazily
    from core.logging import logger
    from core.schemas import Currency

    currencies = [c.value for c in Currency]

    _require(
        settings.refresh_interval_seconds > 0,
        f"REFRESH_INTERVAL_SECONDS must be positive, got {settings.refresh_interval_seconds}"
    )
    _require(
        settings.request_timeout > 0,
        f"REQUEST_TIMEOUT must be positive, got {settings.request_timeout}"
    )
    _require(
        settings.default_currency.upper() in currencies,
        f"Invalid DEFAULT_CURRENCY '{settings.default_currency}', expected one of {', '.join(currencies)}"
    )
    _require(
        settings.coinbase_price_type.lower() in PRICE_TYPES,
        f"Invalid COINBASE_PRICE_TYPE '{settings.coinbase_price_type}', expected one of {', '.join(PRICE_TYPES)}"
    )
    _require(
        1 <= settings.app_port <= 65535,
        f"Invalid APP_PORT {settings.app_port}, expected 1-65535"
    )
    _require(
        settings.log_level.upper() in LOG_LEVELS,
        f"Invalid LOG_LEVEL '{settings.log_level}', expected one of {', '.join(LOG_LEVELS)}"
    )

    logger.info(
        f"Config: currency={settings.default_currency.upper()} "
        f"interval={settings.refresh_interval_seconds}s timeout={settings.request_timeout}s "
        f"coinbase={settings.coinbase_price_type.lower()} "
        f"server={settings.app_host}:{settings.app_port} log={settings.log_level.upper()}"
    )
