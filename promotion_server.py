#!/usr/bin/env python3
"""
Deployment Promotion Controller - HTTP server

Hosts the staging-to-production promotion workflow.

Usage:
    python promotion_server.py

Then a pipeline or operator can:
- POST /api/v1/runs                     - Start promoting a release
- GET  /api/v1/runs/current             - Follow the active run
- POST /api/v1/runs/{run_id}/approval   - Approve or reject production
- POST /api/v1/runs/{run_id}/abort      - Stop at the next stage boundary
"""

import logging
import os

from app.config import settings
from app.main import create_app

logging.basicConfig(
    level=settings.LOG_LEVEL.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = create_app()


if __name__ == "__main__":
    import uvicorn

    port = int(os.getenv("PORT", 8001))
    logger.info(f"🌐 Starting promotion controller on http://localhost:{port}")

    uvicorn.run(
        "promotion_server:app",
        host="0.0.0.0",
        port=port,
        log_level=settings.LOG_LEVEL.lower(),
    )
