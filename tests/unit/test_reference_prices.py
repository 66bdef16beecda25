"""
Unit Tests for the Reference Price Table

Run with:
    pytest tests/unit/test_reference_prices.py -v
"""

import pytest

from core import reference_prices
from core.schemas import Asset, Currency


class TestLookup:
    """Tests for lookup()"""

    def test_base_currency_returns_table_value(self):
        assert reference_prices.lookup(Asset.BTC, Currency.EUR) == 70000.0
        assert reference_prices.lookup(Asset.ETH, Currency.EUR) == 2700.0
        assert reference_prices.lookup(Asset.SOL, Currency.EUR) == 186.0

    def test_btc_in_usd_uses_conversion_rate(self):
        """70000 EUR * 1.08 = 75600.00 USD"""
        assert reference_prices.lookup(Asset.BTC, Currency.USD) == pytest.approx(75600.00)

    def test_table_covers_every_asset(self):
        for asset in Asset:
            for currency in Currency:
                assert reference_prices.lookup(asset, currency) > 0

    @pytest.mark.parametrize("asset", list(Asset))
    def test_conversion_round_trip(self, asset):
        """Converting to USD and back reproduces the EUR reference"""
        usd = reference_prices.lookup(asset, Currency.USD)
        assert reference_prices.to_base(usd, Currency.USD) == pytest.approx(
            reference_prices.REFERENCE_PRICES_EUR[asset], rel=1e-12
        )


class TestChangeFromReference:
    """Tests for change_from_reference()"""

    def test_change_against_eur_reference(self):
        """(72000 - 70000) / 70000 * 100"""
        change = reference_prices.change_from_reference(72000.0, Asset.BTC, Currency.EUR)
        assert abs(change - 2.857142857142857) < 1e-9

    def test_price_at_reference_is_zero_change(self):
        assert reference_prices.change_from_reference(75600.0, Asset.BTC, Currency.USD) == pytest.approx(0.0)

    def test_price_below_reference_is_negative(self):
        assert reference_prices.change_from_reference(2430.0, Asset.ETH, Currency.EUR) == pytest.approx(-10.0)
