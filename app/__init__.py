"""
FastAPI Application Package

Exposes the price refresher over REST and WebSocket endpoints.
"""
