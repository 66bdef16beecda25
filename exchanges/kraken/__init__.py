"""
Kraken Price Source

Source A: one batched Ticker request for all assets. Price and 24h change
both come from the payload (last close vs. today's open).

Failure handling:
    - Transport error, malformed payload or Kraken-reported error:
      every requested asset falls back
    - Pair missing from the result or priced at a non-positive value:
      only that asset falls back
"""

from typing import List, Sequence

from core.exceptions import PriceSourceError
from core.http_client import HttpTransport
from core.logging import get_logger
from core.schemas import Asset, Currency, Quote, Source
from core.source_interface import SourceAdapter
from .api_client import KrakenAPIClient, parse_ticker


logger = get_logger(__name__)


class KrakenSource(SourceAdapter):
    """
    Kraken Price Source

    Example:
        >>> source = KrakenSource(transport)
        >>> quotes = await source.fetch([Asset.BTC, Asset.ETH], Currency.EUR)
    """

    name = Source.KRAKEN

    def __init__(self, transport: HttpTransport):
        super().__init__(transport)
        self.client = KrakenAPIClient(transport)

    async def fetch(self, assets: Sequence[Asset], currency: Currency) -> List[Quote]:
        assets = list(assets)
        try:
            payload = await self.client.get_ticker(assets, currency)
            quotes = parse_ticker(payload, assets, currency)
        except PriceSourceError as e:
            logger.warning(f"Error fetching Kraken prices ({currency.value}): {e}")
            return self.fallbacks(assets)

        for quote in quotes:
            if not quote.is_resolved:
                logger.warning(f"No usable Kraken price for {quote.asset.value}{currency.value}")

        return quotes
