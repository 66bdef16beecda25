"""
Shared test doubles.

- FakeTransport: HttpTransport returning canned payloads by URL fragment
- StubSource: SourceAdapter with fixed prices and an optional gate to hold
  a round in flight
"""

import asyncio
import json
from typing import Any, Dict, List, Optional, Sequence

import pytest

from core.exceptions import TransportError
from core.schemas import Asset, Currency, Quote, Source
from core.source_interface import SourceAdapter


class FakeTransport:
    """
    Routes map a URL fragment to a response:
        - dict / list: JSON-encoded and returned
        - bytes: returned as is
        - Exception instance: raised
    Unknown URLs raise TransportError (HTTP 404).
    """

    def __init__(self, routes: Optional[Dict[str, Any]] = None):
        self.routes = routes or {}
        self.calls: List[tuple] = []

    async def get(self, url: str, params: Optional[Dict[str, Any]] = None) -> bytes:
        self.calls.append((url, params))
        for fragment, response in self.routes.items():
            if fragment in url:
                if isinstance(response, BaseException):
                    raise response
                if isinstance(response, bytes):
                    return response
                return json.dumps(response).encode()
        raise TransportError(f"HTTP 404 on {url}", status_code=404)


class StubSource(SourceAdapter):
    """
    prices: {Currency: {Asset: price}}; unknown pairs resolve to 0.
    gates: {Currency: asyncio.Event} awaited before answering.
    raises: exception raised from fetch (breaks the adapter contract on purpose).
    """

    def __init__(
        self,
        name: Source,
        prices: Optional[Dict[Currency, Dict[Asset, float]]] = None,
        gates: Optional[Dict[Currency, asyncio.Event]] = None,
        raises: Optional[BaseException] = None
    ):
        super().__init__(transport=FakeTransport())
        self.name = name
        self.prices = prices or {}
        self.gates = gates or {}
        self.raises = raises
        self.calls: List[tuple] = []

    async def fetch(self, assets: Sequence[Asset], currency: Currency) -> List[Quote]:
        self.calls.append((list(assets), currency))
        gate = self.gates.get(currency)
        if gate is not None:
            await gate.wait()
        if self.raises is not None:
            raise self.raises
        table = self.prices.get(currency, {})
        return [
            Quote(asset=asset, source=self.name, price=table.get(asset, 0.0), change_percent_24h=1.0)
            for asset in assets
        ]


@pytest.fixture
def fake_transport():
    """Factory: fake_transport({fragment: response})"""
    return FakeTransport


@pytest.fixture
def stub_source():
    return StubSource
