"""
Crypto Price Aggregator API

FastAPI application exposing the price refresher:

REST:
    GET  /                       service info
    GET  /health                 reachability of each source
    GET  /sources                supported sources
    GET  /prices                 latest state + snapshot (optional ?source=kraken)
    POST /prices/refresh         manual refresh (optional ?currency=EUR)
    PUT  /currency/{currency}    switch currency, returns the new snapshot

WebSocket:
    /ws/prices                   every refresher state event as JSON
"""

import asyncio
import contextlib
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, HTTPException, Query, WebSocket, WebSocketDisconnect
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from core.config import settings, validate_configuration
from core.logging import logger
from core.schemas import Currency, Snapshot, Source, StateEvent
from core.source_manager import SourceManager
from services.price_refresher import PriceRefresher


# ============================================
# Lifespan Management
# ============================================

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Handle application startup and shutdown."""
    logger.info("=== Application Starting ===")
    try:
        validate_configuration()
        await manager.initialize_all()
        await refresher.start()
        logger.info("=== Started Successfully ===")
    except Exception as e:
        logger.error(f"Startup failed: {e}")
        raise

    yield

    logger.info("=== Shutting Down ===")
    try:
        await refresher.stop()
        await manager.shutdown_all()
        logger.info("=== Shutdown Complete ===")
    except Exception as e:
        logger.error(f"Shutdown error: {e}")


# ============================================
# FastAPI Application
# ============================================

app = FastAPI(
    title="Crypto Price Aggregator API",
    description=(
        "Unified BTC / ETH / SOL prices from Kraken, Coinbase and Binance, "
        "refreshed every 30 seconds, in USD or EUR.\n\n"
        "Subscribe to `ws://{host}/ws/prices` for live state updates."
    ),
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"]
)

manager = SourceManager()
refresher = PriceRefresher(manager.adapters())


def _parse_currency(value: str) -> Currency:
    try:
        return Currency(value.upper())
    except ValueError:
        valid = ", ".join(c.value for c in Currency)
        raise HTTPException(status_code=400, detail=f"Invalid currency '{value}'. Must be one of: {valid}")


def _parse_source(value: str) -> Source:
    if not manager.has_source(value):
        raise HTTPException(
            status_code=404,
            detail=f"Source '{value}' is not supported. Available sources: {', '.join(manager.list_sources())}"
        )
    return Source(value.lower())


# ============================================
# System Endpoints
# ============================================

@app.get("/", tags=["System"])
async def root():
    """API information."""
    return {
        "name": "Crypto Price Aggregator API",
        "version": "1.0.0",
        "status": "operational",
        "docs": "/docs",
        "sources": manager.list_sources(),
        "currency": refresher.currency.value,
        "refresh_interval_seconds": refresher.interval
    }


@app.get("/health", tags=["System"])
async def health_check():
    """Health check - tests connectivity to all sources."""
    health = await manager.health_check_all()
    return {
        "status": "healthy" if all(health.values()) else "degraded",
        "sources": health
    }


@app.get("/sources", tags=["System"])
async def list_sources():
    """List all supported price sources."""
    return {"sources": manager.list_sources()}


# ============================================
# Price Endpoints
# ============================================

@app.get("/prices", response_model=StateEvent, tags=["Prices"])
async def get_prices(
    source: Optional[str] = Query(default=None, description="Only quotes from this source (e.g., kraken)")
):
    """Latest refresher state with its snapshot."""
    event = refresher.current_event()
    selected = _parse_source(source) if source is not None else None
    if selected is not None and event.snapshot is not None:
        filtered = event.snapshot.model_copy(update={"quotes": event.snapshot.for_source(selected)})
        event = event.model_copy(update={"snapshot": filtered})
    return event


@app.post("/prices/refresh", response_model=Snapshot, tags=["Prices"])
async def refresh_prices(
    currency: Optional[str] = Query(default=None, description="USD or EUR (defaults to the current currency)")
):
    """Run a refresh round now and return the resulting snapshot."""
    selected = _parse_currency(currency) if currency is not None else None
    return await refresher.refresh(selected)


@app.put("/currency/{currency}", response_model=Snapshot, tags=["Prices"])
async def set_currency(currency: str):
    """Switch currency; in-flight rounds for the old currency are discarded."""
    return await refresher.set_currency(_parse_currency(currency))


# ============================================
# WebSocket Endpoints
# ============================================

@app.websocket("/ws/prices")
async def websocket_prices(websocket: WebSocket):
    """
    Stream refresher state events.

    The first message is the current state; afterwards one message per
    transition (fetching, ready, failed).
    """
    await websocket.accept()
    logger.info("WS connected: prices")
    queue = await refresher.subscribe()

    async def forward_events():
        while True:
            event: StateEvent = await queue.get()
            await websocket.send_json(event.model_dump(mode="json"))

    sender = asyncio.create_task(forward_events())
    try:
        # Client messages are ignored; receiving only detects the disconnect
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        logger.info("WS disconnected: prices")
    finally:
        sender.cancel()
        with contextlib.suppress(asyncio.CancelledError, WebSocketDisconnect, RuntimeError):
            await sender
        await refresher.unsubscribe(queue)
        logger.info("WS ended: prices")


# ============================================
# Error Handlers
# ============================================

@app.exception_handler(404)
async def not_found_handler(request, exc):
    """Handle 404 errors."""
    detail = getattr(exc, "detail", "Not found")
    return JSONResponse(status_code=404, content={"detail": detail, "path": str(request.url)})


@app.exception_handler(500)
async def internal_error_handler(request, exc):
    """Handle 500 errors."""
    logger.error(f"Internal error: {exc}")
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})
