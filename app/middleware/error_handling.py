"""
Error handling middleware for the promotion API.

This middleware provides centralized error handling, logging, and response
formatting, so every failure leaves the API as a JSON ``ErrorResponse``.
"""

import logging
import traceback

from fastapi import Request, Response
from fastapi.responses import JSONResponse
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from app.domain.errors import PromotionError
from app.schemas.responses import ErrorResponse

logger = logging.getLogger(__name__)


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """
    Middleware for centralized error handling.

    Promotion errors that escape a handler become 409 responses carrying the
    error kind; anything else becomes a 500.
    """

    def __init__(self, app, enable_error_logging: bool = True):
        """
        Initialize the error handling middleware.

        Args:
            app: FastAPI application instance
            enable_error_logging: Whether to log full tracebacks
        """
        super().__init__(app)
        self.enable_error_logging = enable_error_logging

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        try:
            return await call_next(request)
        except PromotionError as e:
            return self._handle_promotion_error(request, e)
        except Exception as e:
            return self._handle_unexpected_exception(request, e)

    def _handle_promotion_error(self, request: Request, exc: PromotionError) -> JSONResponse:
        logger.warning(f"🚨 {exc.kind} for {request.method} {request.url.path}: {exc.message}")
        error_response = ErrorResponse(
            error=exc.message,
            error_code=exc.kind.upper(),
            details={
                "path": str(request.url.path),
                "method": request.method,
                "environment": exc.environment,
            },
        )
        return JSONResponse(status_code=409, content=error_response.model_dump(mode="json"))

    def _handle_unexpected_exception(self, request: Request, exc: Exception) -> JSONResponse:
        logger.error(f"💥 Unexpected error for {request.method} {request.url.path}: {str(exc)}")
        if self.enable_error_logging:
            logger.error(f"📋 Full traceback:\n{traceback.format_exc()}")

        error_response = ErrorResponse(
            error="Internal server error",
            error_code="INTERNAL_ERROR",
            details={
                "path": str(request.url.path),
                "method": request.method,
                "error_type": type(exc).__name__,
            },
        )
        return JSONResponse(status_code=500, content=error_response.model_dump(mode="json"))
