"""
Error Taxonomy

Per-source errors (TransportError, PayloadError) are raised inside the
exchange api clients and absorbed by the source adapters, which turn them
into fallback quotes. AggregationError is the only one that escapes the
aggregator; the refresher reports it as the Failed state.
"""

from typing import Any, Optional


class PriceSourceError(RuntimeError):
    """Base class for errors coming from a single price source."""

    def __init__(self, message: str, *, source: Optional[str] = None) -> None:
        super().__init__(message)
        self.source = source


class TransportError(PriceSourceError):
    """Network unreachable, non-2xx response or request timeout."""

    def __init__(
        self,
        message: str,
        *,
        source: Optional[str] = None,
        status_code: Optional[int] = None
    ) -> None:
        super().__init__(message, source=source)
        self.status_code = status_code


class PayloadError(PriceSourceError):
    """Unexpected payload shape, source-reported error, or symbol missing from a response."""

    def __init__(self, message: str, *, source: Optional[str] = None, payload: Any = None) -> None:
        super().__init__(message, source=source)
        self.payload = payload


class AggregationError(RuntimeError):
    """The aggregation round itself failed (not an individual source)."""
