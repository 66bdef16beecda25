"""
Binance Price Source

Source C: two requests issued concurrently (all-symbol prices and
all-symbol 24h statistics), joined by symbol.

Failure handling:
    - Price request fails: every requested asset falls back
    - 24h statistics request fails: prices are kept with a 0 change
    - Symbol missing from the price list: only that asset falls back
"""

import asyncio
from typing import List, Sequence

from core.exceptions import PriceSourceError
from core.http_client import HttpTransport
from core.logging import get_logger
from core.schemas import Asset, Currency, Quote, Source
from core.source_interface import SourceAdapter
from .api_client import BinanceAPIClient, binance_symbol, parse_tickers


logger = get_logger(__name__)


class BinanceSource(SourceAdapter):
    """Binance Price Source"""

    name = Source.BINANCE

    def __init__(self, transport: HttpTransport):
        super().__init__(transport)
        self.client = BinanceAPIClient(transport)

    async def fetch(self, assets: Sequence[Asset], currency: Currency) -> List[Quote]:
        assets = list(assets)
        prices, changes = await asyncio.gather(
            self.client.get_prices(),
            self.client.get_24h_changes(),
            return_exceptions=True
        )

        if isinstance(prices, PriceSourceError):
            logger.warning(f"Error fetching Binance prices ({currency.value}): {prices}")
            return self.fallbacks(assets)
        if isinstance(prices, BaseException):
            raise prices

        if isinstance(changes, PriceSourceError):
            logger.warning(f"Error fetching Binance 24h changes ({currency.value}): {changes}")
            changes = []
        elif isinstance(changes, BaseException):
            raise changes

        quotes = parse_tickers(prices, changes, assets, currency)
        for quote in quotes:
            if not quote.is_resolved:
                logger.warning(f"No usable Binance price for {binance_symbol(quote.asset, currency)}")

        return quotes
