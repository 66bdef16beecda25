"""
Coinbase Price Source

Source B: one request per asset, issued concurrently. Each asset succeeds
or falls back on its own, so one failing product never affects its
siblings in the same round.
"""

import asyncio
from typing import List, Sequence

from core.exceptions import PriceSourceError
from core.http_client import HttpTransport
from core.logging import get_logger
from core.schemas import Asset, Currency, Quote, Source
from core.source_interface import SourceAdapter
from .api_client import CoinbaseAPIClient, parse_price


logger = get_logger(__name__)


class CoinbaseSource(SourceAdapter):
    """Coinbase Price Source"""

    name = Source.COINBASE

    def __init__(self, transport: HttpTransport):
        super().__init__(transport)
        self.client = CoinbaseAPIClient(transport)

    async def fetch(self, assets: Sequence[Asset], currency: Currency) -> List[Quote]:
        return list(await asyncio.gather(*(self._fetch_one(asset, currency) for asset in assets)))

    async def _fetch_one(self, asset: Asset, currency: Currency) -> Quote:
        try:
            payload = await self.client.get_price(asset, currency)
            return parse_price(payload, asset, currency)
        except PriceSourceError as e:
            logger.warning(f"Error fetching {asset.value} price from Coinbase: {e}")
            return self.fallback(asset)
