#!/usr/bin/env python3
"""
Terminal client for /ws/prices.

Prints one block per source on every "ready" event, and the error message
on "failed" events.

Usage examples:
  python scripts/watch_prices.py
  python scripts/watch_prices.py --host 127.0.0.1 --port 8000 --currency EUR --source kraken
"""

import asyncio
import argparse
import json
import sys
from typing import Optional

import httpx
import websockets


SOURCES = ("kraken", "coinbase", "binance")


def format_event(event: dict, source: Optional[str] = None) -> str:
    state = event.get("state")
    if state == "fetching":
        return "Loading prices..."
    if state == "failed":
        return f"! {event.get('message')}"

    snapshot = event.get("snapshot") or {}
    currency = snapshot.get("currency", event.get("currency"))
    quotes = snapshot.get("quotes", [])
    if not quotes:
        return "No data"

    lines = []
    for name in SOURCES:
        if source and name != source:
            continue
        lines.append(f"[{name.capitalize()}]")
        for q in (q for q in quotes if q["source"] == name):
            change = q.get("change_percent_24h") or 0.0
            arrow = "▲" if change >= 0 else "▼"
            lines.append(f"  {q['asset']:<4} {q['price']:>14,.2f} {currency}  {arrow} {abs(change):.2f}%")
    return "\n".join(lines)


async def switch_currency(base_http: str, currency: str) -> None:
    async with httpx.AsyncClient(timeout=30.0) as client:
        resp = await client.put(f"{base_http}/currency/{currency}")
        resp.raise_for_status()
        print(f"[Info] Currency set to {currency.upper()}")


async def stream_loop(url: str, source: Optional[str] = None) -> None:
    """
    Connect to the price stream and print incoming events.
    Reconnects on error with exponential backoff.
    """
    attempt = 0
    while True:
        try:
            async with websockets.connect(url) as ws:
                attempt = 0
                print(f"[Info] Connected: {url}")
                async for msg in ws:
                    print(format_event(json.loads(msg), source))
                    print()
        except (OSError, websockets.exceptions.WebSocketException) as e:
            attempt += 1
            backoff = min(2 ** (attempt - 1), 30)
            print(f"[Info] Disconnected ({e}); reconnecting in {backoff}s...")
            await asyncio.sleep(backoff)


async def main() -> None:
    parser = argparse.ArgumentParser(description="Watch aggregated crypto prices")
    parser.add_argument("--host", default="localhost", help="Server host (default: localhost)")
    parser.add_argument("--port", type=int, default=8000, help="Server port (default: 8000)")
    parser.add_argument("--currency", default=None, help="Switch to USD or EUR before watching")
    parser.add_argument("--source", choices=SOURCES, default=None, help="Only show one source")
    args = parser.parse_args()

    if args.currency:
        await switch_currency(f"http://{args.host}:{args.port}", args.currency)

    await stream_loop(f"ws://{args.host}:{args.port}/ws/prices", args.source)


if __name__ == "__main__":
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\n[Info] Interrupted. Bye.")
        sys.exit(0)
