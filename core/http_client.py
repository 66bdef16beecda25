"""
HTTP Transport

The price sources never talk to aiohttp directly. They receive an
`HttpTransport`: "GET a URL and return the raw bytes, or raise
TransportError". Production code uses AiohttpTransport; tests inject
fakes that return canned payloads.

Every request is bounded by `settings.request_timeout`. There are no
retries: a failed request degrades to fallback quotes for this round and
the next timer tick is the next attempt.

Usage:
    async with AiohttpTransport(timeout=10) as transport:
        body = await transport.get("https://api.binance.com/api/v3/ticker/price")
"""

import asyncio
import json
import time
from urllib.parse import urlparse
from typing import Any, Dict, Optional, Protocol

import aiohttp

from core.exceptions import PayloadError, TransportError
from core.logging import get_logger, log_api_request, log_api_response


class HttpTransport(Protocol):
    """Capability injected into every source adapter."""

    async def get(self, url: str, params: Optional[Dict[str, Any]] = None) -> bytes:
        ...


class AiohttpTransport:
    """
    aiohttp-backed HttpTransport.

    Owns a single ClientSession shared by all adapters. Use as an async
    context manager, or call open()/close() explicitly (SourceManager does).

    Attributes:
        timeout: Total timeout per request in seconds
        session: aiohttp ClientSession (None until opened)
    """

    def __init__(self, timeout: Optional[float] = None):
        from core.config import settings

        self.timeout = timeout if timeout is not None else settings.request_timeout
        self.session: Optional[aiohttp.ClientSession] = None
        self.logger = get_logger(__name__)

    # ============================================
    # Session Management
    # ============================================

    async def open(self) -> None:
        if self.session is None or self.session.closed:
            self.session = aiohttp.ClientSession(
                timeout=aiohttp.ClientTimeout(total=self.timeout)
            )
            self.logger.debug("HTTP session created")

    async def close(self) -> None:
        if self.session and not self.session.closed:
            await self.session.close()
            self.logger.debug("HTTP session closed")
        self.session = None

    async def __aenter__(self):
        await self.open()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()

    # ============================================
    # Requests
    # ============================================

    async def get(self, url: str, params: Optional[Dict[str, Any]] = None) -> bytes:
        """
        Perform a GET request and return the raw body.

        Raises:
            TransportError: Session not open, non-2xx status, timeout or
                            connection failure
        """
        if self.session is None or self.session.closed:
            raise TransportError("HTTP session not initialized. Use 'async with' or open().")

        source = urlparse(url).netloc
        log_api_request(source, url, params)
        started = time.monotonic()

        try:
            async with self.session.get(url, params=params) as resp:
                body = await resp.read()
                log_api_response(source, url, resp.status, time.monotonic() - started)
                if not 200 <= resp.status < 300:
                    raise TransportError(
                        f"HTTP {resp.status} on {url}",
                        source=source,
                        status_code=resp.status
                    )
                return body
        except asyncio.TimeoutError as e:
            raise TransportError(f"Timeout after {self.timeout}s on {url}", source=source) from e
        except aiohttp.ClientError as e:
            raise TransportError(f"Request failed on {url}: {e}", source=source) from e



def decode_json(body: bytes, source: Optional[str] = None) -> Any:
    """
    Decode a JSON response body.

    Raises:
        PayloadError: Body is not valid JSON
    """
    try:
        return json.loads(body)
    except (ValueError, UnicodeDecodeError) as e:
        raise PayloadError(f"Malformed JSON payload: {e}", source=source, payload=body[:200]) from e
