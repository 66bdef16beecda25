"""
Kraken REST API Client

One batched call prices every asset:

    GET /0/public/Ticker?pair=XBTUSD,ETHUSD,SOLUSD

Response Format:
    {
      "error": [],
      "result": {
        "XXBTZUSD": {"c": ["72000.10000", "0.0015"], "o": "70500.00000", ...},
        "XETHZUSD": {"c": ["2950.01", "1.2"], "o": "2900.00", ...},
        "SOLUSD":   {"c": ["190.10", "3.1"], "o": "185.00", ...}
      }
    }

    c = last trade closed [price, lot volume]
    o = today's opening price

Kraken calls bitcoin "XBT", and the result keys use Kraken's own pair
names (e.g. "XXBTZUSD"), so the pair for an asset is found by alias and
currency rather than by the requested pair string.

API Documentation:
    https://docs.kraken.com/api/docs/rest-api/get-ticker-information
"""

from typing import Dict, List, Optional, Sequence

from pydantic import BaseModel, ValidationError

from core.exceptions import PayloadError
from core.http_client import HttpTransport, decode_json
from core.logging import get_logger
from core.schemas import Asset, Currency, Quote, Source, is_usable_price


SYMBOL_ALIASES: Dict[Asset, str] = {
    Asset.BTC: "XBT",
}


def kraken_symbol(asset: Asset) -> str:
    return SYMBOL_ALIASES.get(asset, asset.value)


def kraken_pair(asset: Asset, currency: Currency) -> str:
    """
    Example:
        >>> kraken_pair(Asset.BTC, Currency.EUR)
        'XBTEUR'
    """
    return f"{kraken_symbol(asset)}{currency.value}"


# ============================================
# Payload Models
# ============================================

class KrakenTicker(BaseModel):
    c: List[float]
    o: float


class KrakenTickerPayload(BaseModel):
    error: List[str] = []
    result: Dict[str, KrakenTicker] = {}


# ============================================
# Parsing
# ============================================

def find_pair_key(result: Dict[str, KrakenTicker], asset: Asset, currency: Currency) -> Optional[str]:
    """Return the first result key naming `asset` quoted in `currency`, if any."""
    symbol = kraken_symbol(asset)
    for key in result:
        if symbol in key and key.endswith(currency.value):
            return key
    return None


def parse_ticker(payload: KrakenTickerPayload, assets: Sequence[Asset], currency: Currency) -> List[Quote]:
    """
    Map a Ticker payload to one Quote per asset.

    Price is the last close; the 24h change is measured against today's
    opening price. Assets missing from the result, or whose last close is not a
    usable price, get a fallback quote.

    Raises:
        PayloadError: The payload carries a Kraken error
    """
    if payload.error:
        raise PayloadError(f"Kraken error: {payload.error[0]}", source=Source.KRAKEN.value)

    quotes = []
    for asset in assets:
        key = find_pair_key(payload.result, asset, currency)
        ticker = payload.result[key] if key is not None else None
        if ticker is None or not ticker.c or not is_usable_price(ticker.c[0]):
            quotes.append(Quote.fallback(asset, Source.KRAKEN))
            continue

        last = ticker.c[0]
        change = (last - ticker.o) / ticker.o * 100 if is_usable_price(ticker.o) else 0.0
        quotes.append(Quote(asset=asset, source=Source.KRAKEN, price=last, change_percent_24h=change))

    return quotes


# ============================================
# Client
# ============================================

class KrakenAPIClient:
    """
    Async client for the Kraken public Ticker endpoint.

    Attributes:
        base_url: Kraken REST base URL
        transport: Injected HttpTransport
    """

    TICKER_PATH = "/0/public/Ticker"

    def __init__(self, transport: HttpTransport, base_url: Optional[str] = None):
        from core.config import settings

        self.transport = transport
        self.base_url = (base_url or settings.kraken_base_url).rstrip("/")
        self.logger = get_logger(__name__)

    async def get_ticker(self, assets: Sequence[Asset], currency: Currency) -> KrakenTickerPayload:
        """
        Fetch ticker data for all `assets` in a single request.

        Raises:
            TransportError: Request failed
            PayloadError: Response is not a Ticker payload
        """
        pairs = ",".join(kraken_pair(asset, currency) for asset in assets)
        self.logger.debug(f"Fetching Kraken ticker: {pairs}")

        body = await self.transport.get(f"{self.base_url}{self.TICKER_PATH}", {"pair": pairs})
        data = decode_json(body, Source.KRAKEN.value)

        try:
            return KrakenTickerPayload.model_validate(data)
        except ValidationError as e:
            raise PayloadError(
                f"Unexpected Kraken ticker payload: {e}",
                source=Source.KRAKEN.value,
                payload=data
            ) from e
