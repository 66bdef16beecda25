"""
Normalized Data Schemas

This module defines the enumerations and Pydantic models shared by every
price source. Regardless of which exchange a price comes from (Kraken,
Coinbase, Binance), it gets normalized into these schemas so the refresher
and API consumers work with one consistent structure.

Models:
    - Asset, Currency, Source: fixed catalogs (enum order is catalog order)
    - Quote: one normalized (asset, source) price/change record
    - Snapshot: the ordered quotes of the latest completed refresh round
    - RefreshState / StateEvent: refresher state machine and its published events

Source-specific raw payloads are modelled next to their api clients
(exchanges/<source>/api_client.py), not here.
"""

import math
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional
from pydantic import BaseModel, Field, ConfigDict


# ============================================
# Catalogs
# ============================================

class Asset(str, Enum):
    """Tracked crypto assets."""

    BTC = "BTC"
    ETH = "ETH"
    SOL = "SOL"


class Currency(str, Enum):
    """Units of denomination. EUR is the base currency of the reference table."""

    USD = "USD"
    EUR = "EUR"


class Source(str, Enum):
    """Price sources, in display order."""

    KRAKEN = "kraken"
    COINBASE = "coinbase"
    BINANCE = "binance"


ASSETS: List[Asset] = list(Asset)
SOURCES: List[Source] = list(Source)


# ============================================
# Quote Schema
# ============================================

class Quote(BaseModel):
    """
    Normalized Price Quote

    One record per (asset, source) pair and refresh round.

    Attributes:
        asset: Asset being priced
        source: Exchange the price came from
        price: Last price in the round's currency. 0 means "unresolved"
        change_percent_24h: Signed 24h change in percent, 0 when unknown

    Example:
        >>> Quote(asset=Asset.BTC, source=Source.KRAKEN, price=72000.0, change_percent_24h=1.5)

    Notes:
        - Adapters emit price=0 fallback quotes for failures; the aggregator
          drops them before publishing
    """

    asset: Asset = Field(..., description="Asset symbol", examples=["BTC", "ETH", "SOL"])

    source: Source = Field(..., description="Source exchange identifier", examples=["kraken"])

    price: float = Field(
        ...,
        ge=0,  # 0 is the "unresolved" sentinel
        description="Current price in the requested currency"
    )

    change_percent_24h: float = Field(
        default=0.0,
        description="24h price change in percent (signed)"
    )

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "asset": "BTC",
                "source": "kraken",
                "price": 72000.0,
                "change_percent_24h": 2.857
            }
        }
    )

    @classmethod
    def fallback(cls, asset: Asset, source: Source) -> "Quote":
        """Build the price=0 / change=0 record used when a source could not resolve an asset."""
        return cls(asset=asset, source=source, price=0.0, change_percent_24h=0.0)

    @property
    def is_resolved(self) -> bool:
        return self.price > 0


def is_usable_price(value: float) -> bool:
    """Finite and strictly positive. Anything else is reported as an unresolved quote."""
    return math.isfinite(value) and value > 0


# ============================================
# Snapshot Schema
# ============================================

class Snapshot(BaseModel):
    """
    Result of one completed refresh round.

    Quotes are grouped by source in catalog order (Kraken, Coinbase, Binance)
    and, within a source, follow the requested asset order. Every quote has
    price > 0.
    """

    currency: Currency = Field(..., description="Currency all prices are denominated in")

    quotes: List[Quote] = Field(default_factory=list, description="Resolved quotes")

    fetched_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="UTC time the round completed"
    )

    model_config = ConfigDict(frozen=True)

    @property
    def is_empty(self) -> bool:
        return not self.quotes

    def for_source(self, source: Source) -> List[Quote]:
        """Quotes contributed by one source (the per-exchange view)."""
        return [q for q in self.quotes if q.source == source]

    def get(self, asset: Asset, source: Source) -> Optional[Quote]:
        for quote in self.quotes:
            if quote.asset == asset and quote.source == source:
                return quote
        return None


# ============================================
# Refresher State
# ============================================

class RefreshState(str, Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    READY = "ready"
    FAILED = "failed"


class StateEvent(BaseModel):
    """
    Published on every refresher transition.

    - fetching: snapshot carries the last good snapshot (if any)
    - ready: snapshot is the freshly published one (possibly empty)
    - failed: message is user-facing; snapshot is the retained last good one
    """

    state: RefreshState
    currency: Currency
    generation: int = Field(..., ge=0, description="Round generation that produced this event")
    snapshot: Optional[Snapshot] = None
    message: Optional[str] = None
