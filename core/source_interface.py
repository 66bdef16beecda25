"""
Source Interface — Abstract Contract for All Price Sources

This module defines the abstract base class that every price source adapter
must implement. The aggregator and refresher work with SourceAdapter, never
with a concrete exchange, so adding a source means adding one adapter and
registering it in SourceManager.

Contract:
    fetch(assets, currency) -> List[Quote]

    - Exactly one Quote per requested asset, in the requested order
    - Never raises: transport errors, malformed payloads, source-reported
      errors and missing symbols all degrade to a fallback Quote
      (price=0, change=0) for the affected asset(s), logged as a warning

Example:
    class KrakenSource(SourceAdapter):
        name = Source.KRAKEN

        async def fetch(self, assets, currency):
            ...
"""

from abc import ABC, abstractmethod
from typing import List, Sequence

from core.http_client import HttpTransport
from core.schemas import Asset, Currency, Quote, Source


class SourceAdapter(ABC):
    """
    Abstract Base Class for Price Source Adapters

    Class Attributes:
        name: Source identifier (Source enum)

    Instance Attributes:
        transport: Injected HttpTransport used for every request

    Abstract Methods:
        - fetch: Resolve quotes for a list of assets in one currency

    Optional Methods (can be overridden):
        - initialize / shutdown: per-adapter resources
        - health_check: lightweight reachability probe
    """

    name: Source

    def __init__(self, transport: HttpTransport):
        self.transport = transport

    @abstractmethod
    async def fetch(self, assets: Sequence[Asset], currency: Currency) -> List[Quote]:
        """
        Fetch normalized quotes for `assets` denominated in `currency`.

        Args:
            assets: Assets to price, in output order
            currency: Currency to request prices in

        Returns:
            List[Quote]: One quote per asset, same order as `assets`.
                         Unresolved assets carry price=0.
        """
        ...

    # ============================================
    # Optional Lifecycle Methods
    # ============================================

    async def initialize(self) -> None:
        pass

    async def shutdown(self) -> None:
        pass

    async def health_check(self) -> bool:
        """
        Check that the source answers a real request for one asset.

        Returns:
            bool: True if at least one quote resolved
        """
        quotes = await self.fetch([Asset.BTC], Currency.USD)
        return any(q.is_resolved for q in quotes)

    # ============================================
    # Helper Methods
    # ============================================

    def fallback(self, asset: Asset) -> Quote:
        return Quote.fallback(asset, self.name)

    def fallbacks(self, assets: Sequence[Asset]) -> List[Quote]:
        return [self.fallback(asset) for asset in assets]

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__}(name='{self.name.value}')>"
