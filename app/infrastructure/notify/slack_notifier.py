"""Slack incoming-webhook notifier."""
import logging
from typing import Any, Dict, List, Optional

import httpx

from app.domain.entities.notification import Notification
from app.infrastructure.notify.notifier import Notifier

logger = logging.getLogger(__name__)


class SlackNotifier(Notifier):
    def __init__(
        self,
        webhook_url: str,
        channel: Optional[str] = None,
        timeout: float = 5.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.webhook_url = webhook_url
        self.channel = channel
        self.client = httpx.AsyncClient(timeout=timeout, transport=transport)

    def build_payload(self, notification: Notification) -> Dict[str, Any]:
        """Render a notification as a Slack attachment message."""
        fields: List[Dict[str, Any]] = [
            {"title": "Job", "value": notification.job_id, "short": True},
            {"title": "Build", "value": notification.build_id, "short": True},
        ]
        if notification.final:
            fields.append({"title": "Status", "value": notification.status, "short": True})
            if notification.duration_seconds is not None:
                fields.append(
                    {"title": "Duration", "value": f"{notification.duration_seconds:.0f}s", "short": True}
                )
            for name, url in notification.links.items():
                fields.append({"title": name.capitalize(), "value": url, "short": False})

        payload: Dict[str, Any] = {
            "attachments": [
                {
                    "color": notification.severity.value,
                    "text": notification.message,
                    "fields": fields,
                    "ts": int(notification.timestamp.timestamp()),
                }
            ]
        }
        channel = notification.channel or self.channel
        if channel:
            payload["channel"] = channel
        return payload

    async def send(self, notification: Notification) -> bool:
        try:
            response = await self.client.post(self.webhook_url, json=self.build_payload(notification))
        except httpx.HTTPError as e:
            logger.warning(f"⚠️ Slack notification failed: {e}")
            return False

        if response.status_code >= 400:
            logger.warning(f"⚠️ Slack webhook returned {response.status_code}: {response.text[:200]}")
            return False
        return True

    async def close(self) -> None:
        await self.client.aclose()
