"""
Reference Price Table

One fixed "yesterday" price per asset, denominated in EUR, plus a fixed
EUR -> USD conversion rate. Sources that do not report their own 24h change
(Coinbase) derive it from this table:

    change% = (current - reference) / reference * 100

The table covers the whole asset catalog, so lookups have no error path.
"""

from typing import Dict

from core.schemas import Asset, Currency


BASE_CURRENCY = Currency.EUR

EUR_TO_USD = 1.08

REFERENCE_PRICES_EUR: Dict[Asset, float] = {
    Asset.BTC: 70000.0,
    Asset.ETH: 2700.0,
    Asset.SOL: 186.0,
}


def conversion_rate(currency: Currency) -> float:
    """Multiplier from the base currency (EUR) into `currency`."""
    return 1.0 if currency == BASE_CURRENCY else EUR_TO_USD


def lookup(asset: Asset, currency: Currency) -> float:
    """
    Reference price for `asset` in `currency`.

    Example:
        >>> lookup(Asset.BTC, Currency.USD)
        75600.0
    """
    return REFERENCE_PRICES_EUR[asset] * conversion_rate(currency)


def to_base(price: float, currency: Currency) -> float:
    """Convert a price denominated in `currency` back into EUR."""
    return price / conversion_rate(currency)


def change_from_reference(current: float, asset: Asset, currency: Currency) -> float:
    """24h change in percent of `current` against the reference price."""
    reference = lookup(asset, currency)
    return (current - reference) / reference * 100
