"""
Request/response logging middleware for the promotion API.
"""

import json
import logging
import time
from datetime import datetime
from typing import Any, Dict

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

logger = logging.getLogger(__name__)

SENSITIVE_HEADERS = {"authorization", "cookie", "x-api-key", "x-auth-token"}
QUIET_PATHS = {"/health", "/api/v1/health", "/favicon.ico"}


class LoggingMiddleware(BaseHTTPMiddleware):
    """
    Logs every request and response with timing.

    Health checks are logged at debug level only, since load balancers
    poll them constantly.
    """

    def __init__(self, app, enable_detailed_logging: bool = False):
        super().__init__(app)
        self.enable_detailed_logging = enable_detailed_logging

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start_time = time.time()
        log = logger.debug if request.url.path in QUIET_PATHS else logger.info

        log(f"📥 {request.method} {request.url.path} - {request.client.host if request.client else '-'}")
        if self.enable_detailed_logging:
            logger.debug(f"📋 Request details: {json.dumps(self._extract_request_info(request), indent=2)}")

        try:
            response = await call_next(request)
        except Exception as e:
            process_time = time.time() - start_time
            logger.error(
                f"💥 {request.method} {request.url.path} - ERROR - {process_time:.3f}s - {str(e)}"
            )
            raise

        process_time = time.time() - start_time
        log(f"📤 {request.method} {request.url.path} - {response.status_code} - {process_time:.3f}s")

        response.headers["X-Process-Time"] = str(process_time)
        response.headers["X-Timestamp"] = datetime.now().isoformat()
        return response

    def _extract_request_info(self, request: Request) -> Dict[str, Any]:
        return {
            "method": request.method,
            "path": str(request.url.path),
            "query_params": dict(request.query_params),
            "client_ip": request.client.host if request.client else None,
            "user_agent": request.headers.get("user-agent"),
            "headers": {
                k: v for k, v in request.headers.items() if k.lower() not in SENSITIVE_HEADERS
            },
            "timestamp": datetime.now().isoformat(),
        }
