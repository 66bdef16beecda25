"""
Binance REST API Client

Two global endpoints, each returning every listed symbol:

    GET /api/v3/ticker/price   -> [{"symbol": "BTCUSDT", "price": "72000.01"}, ...]
    GET /api/v3/ticker/24hr    -> [{"symbol": "BTCUSDT", "priceChangePercent": "2.150", ...}, ...]

The two lists are joined client-side by symbol. Binance has no USD spot
books for these assets, so USD prices are read from the USDT pairs.

Error Format:
    {"code": -1121, "msg": "Invalid symbol."}

API Documentation:
    https://developers.binance.com/docs/binance-spot-api-docs/rest-api/market-data-endpoints
"""

import math
from typing import Dict, List, Optional, Sequence

from pydantic import BaseModel, TypeAdapter, ValidationError

from core.exceptions import PayloadError
from core.http_client import HttpTransport, decode_json
from core.logging import get_logger
from core.schemas import Asset, Currency, Quote, Source, is_usable_price


QUOTE_ASSETS: Dict[Currency, str] = {
    Currency.USD: "USDT",
    Currency.EUR: "EUR",
}


def binance_symbol(asset: Asset, currency: Currency) -> str:
    """
    Example:
        >>> binance_symbol(Asset.ETH, Currency.USD)
        'ETHUSDT'
    """
    return f"{asset.value}{QUOTE_ASSETS[currency]}"


# ============================================
# Payload Models
# ============================================

class BinancePriceTicker(BaseModel):
    symbol: str
    price: float


class Binance24hTicker(BaseModel):
    symbol: str
    priceChangePercent: float


_price_list = TypeAdapter(List[BinancePriceTicker])
_change_list = TypeAdapter(List[Binance24hTicker])


# ============================================
# Parsing
# ============================================

def parse_tickers(
    prices: List[BinancePriceTicker],
    changes: List[Binance24hTicker],
    assets: Sequence[Asset],
    currency: Currency
) -> List[Quote]:
    """
    Join price and 24h statistics by symbol into one Quote per asset.

    An asset missing from `prices`, or priced at a non-positive or non-finite
    value, gets a fallback quote. An asset missing only from `changes` keeps
    its price with a 0 change.
    """
    price_by_symbol = {t.symbol: t.price for t in prices}
    change_by_symbol = {t.symbol: t.priceChangePercent for t in changes}

    quotes = []
    for asset in assets:
        symbol = binance_symbol(asset, currency)
        price = price_by_symbol.get(symbol)
        if price is None or not is_usable_price(price):
            quotes.append(Quote.fallback(asset, Source.BINANCE))
            continue
        change = change_by_symbol.get(symbol, 0.0)
        quotes.append(Quote(
            asset=asset,
            source=Source.BINANCE,
            price=price,
            change_percent_24h=change if math.isfinite(change) else 0.0
        ))

    return quotes


# ============================================
# Client
# ============================================

class BinanceAPIClient:
    """
    Async client for the Binance spot ticker endpoints.

    Attributes:
        base_url: Binance spot REST base URL
        transport: Injected HttpTransport
    """

    PRICE_PATH = "/api/v3/ticker/price"
    STATS_24H_PATH = "/api/v3/ticker/24hr"

    def __init__(self, transport: HttpTransport, base_url: Optional[str] = None):
        from core.config import settings

        self.transport = transport
        self.base_url = (base_url or settings.binance_base_url).rstrip("/")
        self.logger = get_logger(__name__)

    async def _get_list(self, path: str, adapter: TypeAdapter) -> list:
        body = await self.transport.get(f"{self.base_url}{path}")
        data = decode_json(body, Source.BINANCE.value)

        if isinstance(data, dict) and "msg" in data:
            raise PayloadError(
                f"Binance error {data.get('code')}: {data['msg']}",
                source=Source.BINANCE.value,
                payload=data
            )

        try:
            return adapter.validate_python(data)
        except ValidationError as e:
            raise PayloadError(
                f"Unexpected Binance payload on {path}: {e}",
                source=Source.BINANCE.value,
                payload=data
            ) from e

    async def get_prices(self) -> List[BinancePriceTicker]:
        """
        Fetch the latest price of every symbol.

        Raises:
            TransportError: Request failed
            PayloadError: Response is not a list of price tickers
        """
        tickers = await self._get_list(self.PRICE_PATH, _price_list)
        self.logger.debug(f"Fetched {len(tickers)} Binance price tickers")
        return tickers

    async def get_24h_changes(self) -> List[Binance24hTicker]:
        """
        Fetch 24h statistics of every symbol.

        Raises:
            TransportError: Request failed
            PayloadError: Response is not a list of 24h tickers
        """
        tickers = await self._get_list(self.STATS_24H_PATH, _change_list)
        self.logger.debug(f"Fetched {len(tickers)} Binance 24h tickers")
        return tickers
