"""
Unit Tests for the Kraken Price Source

These tests verify that KrakenSource:
- Requests every asset in one batched Ticker call, using the XBT alias
- Derives the 24h change from last close vs. opening price
- Falls back per asset when a pair is missing from the result
- Falls back for every asset on transport or Kraken-reported errors

Run with:
    pytest tests/unit/test_kraken_source.py -v
"""

import pytest

from core.exceptions import PayloadError, TransportError
from core.schemas import ASSETS, Asset, Currency, Source
from exchanges.kraken import KrakenSource
from exchanges.kraken.api_client import KrakenTickerPayload, kraken_pair, parse_ticker


TICKER_PATH = "/0/public/Ticker"

FULL_RESULT = {
    "error": [],
    "result": {
        "XXBTZUSD": {"a": ["72001.0", "1", "1.000"], "c": ["72000.0", "0.015"], "o": "70000.0"},
        "XETHZUSD": {"c": ["2970.00", "1.2"], "o": "2700.00"},
        "SOLUSD": {"c": ["180.00", "3.0"], "o": "200.00"},
    }
}


# ============================================
# Tests for Symbol Mapping
# ============================================

class TestPairs:

    def test_btc_uses_xbt_alias(self):
        assert kraken_pair(Asset.BTC, Currency.USD) == "XBTUSD"
        assert kraken_pair(Asset.BTC, Currency.EUR) == "XBTEUR"

    def test_other_assets_keep_symbol(self):
        assert kraken_pair(Asset.ETH, Currency.EUR) == "ETHEUR"
        assert kraken_pair(Asset.SOL, Currency.USD) == "SOLUSD"


# ============================================
# Tests for parse_ticker
# ============================================

class TestParseTicker:

    def test_parses_price_and_change(self):
        payload = KrakenTickerPayload.model_validate(FULL_RESULT)

        quotes = parse_ticker(payload, ASSETS, Currency.USD)

        assert [q.asset for q in quotes] == ASSETS
        assert all(q.source == Source.KRAKEN for q in quotes)
        assert quotes[0].price == 72000.0
        assert abs(quotes[0].change_percent_24h - 2.857142857142857) < 1e-9
        assert quotes[1].change_percent_24h == pytest.approx(10.0)
        assert quotes[2].change_percent_24h == pytest.approx(-10.0)

    def test_zero_opening_price_gives_zero_change(self):
        payload = KrakenTickerPayload.model_validate(
            {"error": [], "result": {"SOLUSD": {"c": ["180.0", "1"], "o": "0"}}}
        )

        quotes = parse_ticker(payload, [Asset.SOL], Currency.USD)

        assert quotes[0].price == 180.0
        assert quotes[0].change_percent_24h == 0.0

    def test_kraken_error_raises_payload_error(self):
        payload = KrakenTickerPayload.model_validate({"error": ["EQuery:Unknown asset pair"]})

        with pytest.raises(PayloadError, match="Unknown asset pair"):
            parse_ticker(payload, ASSETS, Currency.USD)

    def test_pair_for_other_currency_is_not_matched(self):
        payload = KrakenTickerPayload.model_validate(
            {"error": [], "result": {"XXBTZEUR": {"c": ["65000", "1"], "o": "64000"}}}
        )

        quotes = parse_ticker(payload, [Asset.BTC], Currency.USD)

        assert quotes[0].price == 0.0


# ============================================
# Tests for KrakenSource.fetch
# ============================================

class TestKrakenSource:

    @pytest.mark.asyncio
    async def test_issues_single_batched_request(self, fake_transport):
        transport = fake_transport({TICKER_PATH: FULL_RESULT})

        await KrakenSource(transport).fetch(ASSETS, Currency.USD)

        assert len(transport.calls) == 1
        url, params = transport.calls[0]
        assert url.endswith(TICKER_PATH)
        assert params == {"pair": "XBTUSD,ETHUSD,SOLUSD"}

    @pytest.mark.asyncio
    async def test_missing_pair_falls_back_for_that_asset_only(self, fake_transport):
        """Two of three pairs returned -> three quotes, one unresolved"""
        payload = {"error": [], "result": {k: v for k, v in FULL_RESULT["result"].items() if k != "SOLUSD"}}
        transport = fake_transport({TICKER_PATH: payload})

        quotes = await KrakenSource(transport).fetch(ASSETS, Currency.USD)

        assert len(quotes) == 3
        assert [q.price for q in quotes] == [72000.0, 2970.0, 0.0]
        assert quotes[2].change_percent_24h == 0.0

    @pytest.mark.asyncio
    async def test_transport_error_falls_back_for_all_assets(self, fake_transport):
        transport = fake_transport({TICKER_PATH: TransportError("HTTP 503", status_code=503)})

        quotes = await KrakenSource(transport).fetch(ASSETS, Currency.EUR)

        assert len(quotes) == 3
        assert all(q.price == 0.0 and q.change_percent_24h == 0.0 for q in quotes)

    @pytest.mark.asyncio
    async def test_kraken_error_field_falls_back_for_all_assets(self, fake_transport):
        transport = fake_transport({TICKER_PATH: {"error": ["EGeneral:Internal error"], "result": {}}})

        quotes = await KrakenSource(transport).fetch(ASSETS, Currency.USD)

        assert [q.price for q in quotes] == [0.0, 0.0, 0.0]

    @pytest.mark.asyncio
    async def test_malformed_payload_falls_back(self, fake_transport):
        transport = fake_transport({TICKER_PATH: b"<html>maintenance</html>"})

        quotes = await KrakenSource(transport).fetch(ASSETS, Currency.USD)

        assert len(quotes) == 3
        assert not any(q.is_resolved for q in quotes)

    @pytest.mark.asyncio
    async def test_unexpected_shape_falls_back(self, fake_transport):
        transport = fake_transport({TICKER_PATH: {"error": [], "result": {"XXBTZUSD": {"c": "oops"}}}})

        quotes = await KrakenSource(transport).fetch([Asset.BTC], Currency.USD)

        assert quotes[0].price == 0.0

    @pytest.mark.asyncio
    async def test_negative_price_falls_back_for_that_asset_only(self, fake_transport):
        payload = {"error": [], "result": dict(FULL_RESULT["result"])}
        payload["result"]["XXBTZUSD"] = {"c": ["-5", "1"], "o": "70000.0"}
        transport = fake_transport({TICKER_PATH: payload})

        quotes = await KrakenSource(transport).fetch(ASSETS, Currency.USD)

        assert [q.price for q in quotes] == [0.0, 2970.0, 180.0]
        assert quotes[0].change_percent_24h == 0.0

    def test_non_finite_price_and_open_are_not_used(self):
        payload = KrakenTickerPayload.model_validate({
            "error": [],
            "result": {
                "XXBTZUSD": {"c": ["nan", "1"], "o": "70000"},
                "SOLUSD": {"c": ["180.0", "1"], "o": "inf"},
            }
        })

        quotes = parse_ticker(payload, [Asset.BTC, Asset.SOL], Currency.USD)

        assert quotes[0].price == 0.0
        assert quotes[1].price == 180.0
        assert quotes[1].change_percent_24h == 0.0
