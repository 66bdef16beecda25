#!/usr/bin/env python3
"""
Start script - runs the API with uvicorn, honoring the PORT environment variable
"""
import os

import uvicorn

from core.config import settings


if __name__ == "__main__":
    port = int(os.getenv("PORT", settings.app_port))

    uvicorn.run(
        "app.main:app",
        host=settings.app_host,
        port=port,
        log_level=settings.log_level.lower()
    )
