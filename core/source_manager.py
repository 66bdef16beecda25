"""
Source Manager — Central Registry for Price Sources

The SourceManager owns the shared HTTP transport and a static registry of
one adapter per Source. The aggregator and API routes ask the manager for
adapters instead of instantiating them, so adding a source means writing an
adapter and registering it here.

Example Usage:
    manager = SourceManager()
    await manager.initialize_all()       # opens the HTTP session

    kraken = manager.get_source("kraken")
    quotes = await kraken.fetch([Asset.BTC], Currency.USD)

    await manager.shutdown_all()
"""

from typing import Dict, List, Optional, Union

from core.http_client import AiohttpTransport, HttpTransport
from core.logging import logger
from core.schemas import Source
from core.source_interface import SourceAdapter


class SourceManager:
    """
    Central Manager for Price Sources

    Attributes:
        transport: HttpTransport shared by every adapter
        sources: Registry mapping Source to its adapter, in catalog order
    """

    def __init__(self, transport: Optional[HttpTransport] = None):
        """
        Create the registry.

        Args:
            transport: Injected HttpTransport. Defaults to an AiohttpTransport
                       whose session is opened by initialize_all()
        """
        # Each source module imports from core, so we can't import at module level
        from exchanges.kraken import KrakenSource
        from exchanges.coinbase import CoinbaseSource
        from exchanges.binance import BinanceSource

        self.transport: HttpTransport = transport if transport is not None else AiohttpTransport()

        self.sources: Dict[Source, SourceAdapter] = {
            Source.KRAKEN: KrakenSource(self.transport),
            Source.COINBASE: CoinbaseSource(self.transport),
            Source.BINANCE: BinanceSource(self.transport),
        }

        logger.info(
            f"SourceManager initialized with {len(self.sources)} source(s): "
            f"{', '.join(s.value for s in self.sources)}"
        )

    # ============================================
    # Source Retrieval Methods
    # ============================================

    def get_source(self, name: Union[str, Source]) -> SourceAdapter:
        """
        Get a source adapter by name.

        Raises:
            ValueError: If the source is not supported
        """
        try:
            key = Source(name.lower() if isinstance(name, str) else name)
        except ValueError:
            key = None

        if key not in self.sources:
            available = ", ".join(self.list_sources())
            logger.error(f"Source '{name}' not found. Available: {available}")
            raise ValueError(f"Source '{name}' is not supported. Available sources: {available}")

        return self.sources[key]

    def has_source(self, name: str) -> bool:
        return name.lower() in self.list_sources()

    def list_sources(self) -> List[str]:
        return [s.value for s in self.sources]

    def adapters(self) -> List[SourceAdapter]:
        """All adapters in catalog order."""
        return list(self.sources.values())

    # ============================================
    # Lifecycle Management
    # ============================================

    async def initialize_all(self) -> None:
        """Open the shared transport and initialize every adapter."""
        logger.info("Initializing all sources...")

        if isinstance(self.transport, AiohttpTransport):
            await self.transport.open()

        for source, adapter in self.sources.items():
            try:
                await adapter.initialize()
                logger.info(f"✓ {source.value.capitalize()} initialized successfully")
            except Exception as e:
                logger.error(f"✗ Failed to initialize {source.value}: {e}")

        logger.info("All sources initialized")

    async def shutdown_all(self) -> None:
        """Shut down every adapter and close the shared transport."""
        logger.info("Shutting down all sources...")

        for source, adapter in self.sources.items():
            try:
                await adapter.shutdown()
                logger.info(f"✓ {source.value.capitalize()} shut down successfully")
            except Exception as e:
                logger.error(f"✗ Error shutting down {source.value}: {e}")

        if isinstance(self.transport, AiohttpTransport):
            await self.transport.close()

        logger.info("All sources shut down")

    # ============================================
    # Health Check Methods
    # ============================================

    async def health_check_all(self) -> Dict[str, bool]:
        """
        Check health status of all sources.

        Returns:
            Dict[str, bool]: Source name to health status

        Example:
            >>> await manager.health_check_all()
            {'kraken': True, 'coinbase': True, 'binance': False}
        """
        health_status = {}
        for source, adapter in self.sources.items():
            try:
                health_status[source.value] = await adapter.health_check()
            except Exception as e:
                logger.error(f"Health check failed for {source.value}: {e}")
                health_status[source.value] = False

        return health_status

    def __repr__(self) -> str:
        return f"<SourceManager(sources={self.list_sources()})>"

    def __len__(self) -> int:
        return len(self.sources)
