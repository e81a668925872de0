"""
Abstract base class for notification sinks.

A sink receives a finished ``Notification`` payload and delivers it
somewhere (chat webhook, log stream). Delivery is best-effort: sinks
report failure through their return value and never raise.
"""

import logging
from abc import ABC, abstractmethod

from app.domain.entities.notification import Notification, Severity

logger = logging.getLogger(__name__)


class Notifier(ABC):
    @abstractmethod
    async def send(self, notification: Notification) -> bool:
        """
        Deliver one notification.

        Args:
            notification: Payload to deliver

        Returns:
            True if the sink accepted the payload, False otherwise
        """

    async def close(self) -> None:
        pass


class LogNotifier(Notifier):
    """Writes notifications to the application log. Used when no webhook is configured."""

    async def send(self, notification: Notification) -> bool:
        level = logging.ERROR if notification.severity == Severity.DANGER else logging.INFO
        logger.log(
            level,
            f"📣 [{notification.severity.value}] {notification.message} "
            f"(job={notification.job_id} build={notification.build_id})",
        )
        return True
