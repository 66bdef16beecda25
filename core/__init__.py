"""
Core Package

Contains the exchange-agnostic core logic including:
- SourceAdapter: Abstract base class defining the contract for all price sources
- SourceManager: Registry of the source adapters and their shared HTTP transport
- aggregator: Concurrent fan-out over all sources for one refresh round
- reference_prices: Fixed reference prices used to derive 24h changes
- Schemas: Pydantic models for normalized data (Quote, Snapshot, StateEvent)
"""
