"""
Price Aggregator

Runs every source adapter concurrently for one currency, concatenates their
quotes grouped by source, and drops unresolved quotes (price <= 0).

Per-source failures never reach this layer: adapters already turned them
into fallback quotes. If every source fails the result is simply an empty
Snapshot. Anything an adapter does raise is an orchestration failure and is
reported as AggregationError.
"""

import asyncio
from typing import List, Sequence

from core.exceptions import AggregationError
from core.logging import get_logger
from core.schemas import Asset, Currency, Quote, Snapshot
from core.source_interface import SourceAdapter


logger = get_logger(__name__)


def filter_resolved(quotes: Sequence[Quote]) -> List[Quote]:
    """Keep quotes with a positive price, preserving order."""
    return [q for q in quotes if q.price > 0]


async def run(
    assets: Sequence[Asset],
    currency: Currency,
    sources: Sequence[SourceAdapter]
) -> Snapshot:
    """
    Run one aggregation round.

    Args:
        assets: Assets to price, in output order
        currency: Currency for every source
        sources: Adapters to query, in output order

    Returns:
        Snapshot: Resolved quotes grouped by source (possibly empty)

    Raises:
        AggregationError: An adapter broke its never-raise contract
    """
    assets = list(assets)
    results = await asyncio.gather(
        *(source.fetch(assets, currency) for source in sources),
        return_exceptions=True
    )

    merged: List[Quote] = []
    for source, result in zip(sources, results):
        if isinstance(result, BaseException):
            raise AggregationError(f"Source {source.name.value} failed unexpectedly: {result}") from result
        merged.extend(result)

    quotes = filter_resolved(merged)
    logger.info(
        f"Aggregated {len(quotes)}/{len(merged)} quotes in {currency.value} "
        f"from {len(sources)} source(s)"
    )
    return Snapshot(currency=currency, quotes=quotes)
