"""
Coinbase REST API Client

One request per asset:

    GET /v2/prices/{ASSET}-{CURRENCY}/{price_type}     (price_type: spot | buy | sell)

Response Format:
    {"data": {"amount": "72000.00", "base": "BTC", "currency": "USD"}}

    or, on failure:

    {"errors": [{"id": "not_found", "message": "Invalid currency"}]}

Coinbase does not report a 24h change on this endpoint; it is derived from
the reference price table instead.

API Documentation:
    https://docs.cdp.coinbase.com/coinbase-app/docs/api-prices
"""

from typing import List, Optional

from pydantic import BaseModel, ValidationError

from core import reference_prices
from core.exceptions import PayloadError
from core.http_client import HttpTransport, decode_json
from core.logging import get_logger
from core.schemas import Asset, Currency, Quote, Source, is_usable_price


def coinbase_product(asset: Asset, currency: Currency) -> str:
    return f"{asset.value}-{currency.value}"


# ============================================
# Payload Models
# ============================================

class CoinbasePrice(BaseModel):
    amount: float
    base: Optional[str] = None
    currency: Optional[str] = None


class CoinbaseError(BaseModel):
    id: Optional[str] = None
    message: str = "unknown error"


class CoinbasePricePayload(BaseModel):
    data: Optional[CoinbasePrice] = None
    errors: Optional[List[CoinbaseError]] = None


# ============================================
# Parsing
# ============================================

def parse_price(payload: CoinbasePricePayload, asset: Asset, currency: Currency) -> Quote:
    """
    Map a price payload to a Quote, deriving the 24h change from the
    reference table in `currency`.

    Raises:
        PayloadError: Coinbase reported an error, sent no price or sent an unusable one
    """
    if payload.errors:
        raise PayloadError(f"Coinbase error: {payload.errors[0].message}", source=Source.COINBASE.value)
    if payload.data is None:
        raise PayloadError("Coinbase payload has no price data", source=Source.COINBASE.value)

    price = payload.data.amount
    if not is_usable_price(price):
        raise PayloadError(f"Coinbase sent an unusable price: {price}", source=Source.COINBASE.value)

    return Quote(
        asset=asset,
        source=Source.COINBASE,
        price=price,
        change_percent_24h=reference_prices.change_from_reference(price, asset, currency)
    )


# ============================================
# Client
# ============================================

class CoinbaseAPIClient:
    """
    Async client for the Coinbase v2 prices endpoint.

    Attributes:
        base_url: Coinbase REST base URL
        price_type: "spot", "buy" or "sell"
        transport: Injected HttpTransport
    """

    def __init__(
        self,
        transport: HttpTransport,
        base_url: Optional[str] = None,
        price_type: Optional[str] = None
    ):
        from core.config import settings

        self.transport = transport
        self.base_url = (base_url or settings.coinbase_base_url).rstrip("/")
        self.price_type = (price_type or settings.coinbase_price_type).lower()
        self.logger = get_logger(__name__)

    async def get_price(self, asset: Asset, currency: Currency) -> CoinbasePricePayload:
        """
        Fetch the current price of one asset.

        Raises:
            TransportError: Request failed (Coinbase answers unknown products with 404)
            PayloadError: Response is not a price payload
        """
        product = coinbase_product(asset, currency)
        self.logger.debug(f"Fetching Coinbase {self.price_type} price: {product}")

        body = await self.transport.get(f"{self.base_url}/v2/prices/{product}/{self.price_type}")
        data = decode_json(body, Source.COINBASE.value)

        try:
            return CoinbasePricePayload.model_validate(data)
        except ValidationError as e:
            raise PayloadError(
                f"Unexpected Coinbase price payload for {product}: {e}",
                source=Source.COINBASE.value,
                payload=data
            ) from e
