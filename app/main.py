import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.api.v1 import health, runs
from app.config import settings
from app.dependencies import build_registry
from app.domain.services.promotion_service import RunRegistry
from app.middleware import ErrorHandlingMiddleware, LoggingMiddleware

logger = logging.getLogger(__name__)


def create_app(registry: Optional[RunRegistry] = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.registry = registry or build_registry(settings)
        logger.info("🚦 Promotion controller ready")
        yield
        await app.state.registry.shutdown()
        await app.state.registry.controller.notifications.notifier.close()

    app = FastAPI(
        title="Deployment Promotion Controller",
        description="Staging-to-production promotion with health verification and approval gating",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    # last added runs first
    app.add_middleware(LoggingMiddleware, enable_detailed_logging=settings.LOG_LEVEL.upper() == "DEBUG")
    app.add_middleware(ErrorHandlingMiddleware, enable_error_logging=True)

    @app.get("/")
    async def root():
        return {
            "name": "Deployment Promotion Controller",
            "version": "0.1.0",
            "endpoints": {
                "health": "/health",
                "runs": "/api/v1/runs",
                "current_run": "/api/v1/runs/current",
                "approval": "/api/v1/runs/{run_id}/approval",
                "abort": "/api/v1/runs/{run_id}/abort",
            },
        }

    app.include_router(health.router)
    app.include_router(health.router, prefix="/api/v1")
    app.include_router(runs.router, prefix="/api/v1")

    return app
