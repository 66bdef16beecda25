"""
Test Suite

Unit tests live in tests/unit/. Sources are exercised against fake HTTP
transports returning canned payloads; no test touches the network.

Uses pytest with pytest-asyncio for testing async functionality.
"""
