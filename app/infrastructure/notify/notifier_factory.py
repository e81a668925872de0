"""
Factory for the notification sink.

Picks the Slack webhook sink when a webhook URL is configured and falls
back to the log sink otherwise.
"""

import logging

from app.config import Settings
from app.infrastructure.notify.notifier import LogNotifier, Notifier
from app.infrastructure.notify.slack_notifier import SlackNotifier

logger = logging.getLogger(__name__)


class NotifierFactory:
    @staticmethod
    def create(settings: Settings) -> Notifier:
        if settings.SLACK_WEBHOOK_URL:
            logger.info("💬 Creating Slack webhook notifier")
            return SlackNotifier(
                webhook_url=settings.SLACK_WEBHOOK_URL,
                channel=settings.SLACK_CHANNEL,
                timeout=settings.NOTIFY_TIMEOUT_SECONDS,
            )
        logger.info("📝 No Slack webhook configured, notifications go to the log")
        return LogNotifier()

    @staticmethod
    def get_notifier_type(settings: Settings) -> str:
        return "slack" if settings.SLACK_WEBHOOK_URL else "log"
