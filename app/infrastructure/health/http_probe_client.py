"""HTTP health probe client."""
import logging
from typing import Optional

import httpx

from app.domain.entities.health_check import ProbeOutcome

logger = logging.getLogger(__name__)


class HttpProbeClient:
    """Issues plain GET requests against health endpoints."""

    def __init__(self, transport: Optional[httpx.AsyncBaseTransport] = None):
        self._transport = transport

    async def probe(self, url: str, timeout: float = 10.0) -> ProbeOutcome:
        """
        GET ``url`` once.

        Args:
            url: Health-check URL
            timeout: Per-request timeout in seconds

        Returns:
            ProbeOutcome with the status code, or the error text when the
            request itself failed
        """
        try:
            async with httpx.AsyncClient(timeout=timeout, transport=self._transport) as client:
                response = await client.get(url)
        except httpx.HTTPError as e:
            logger.warning(f"⚠️ Health probe to {url} failed: {type(e).__name__}: {e}")
            return ProbeOutcome(error=f"{type(e).__name__}: {e}")

        logger.info(f"🩺 GET {url} -> {response.status_code}")
        return ProbeOutcome(status_code=response.status_code)
