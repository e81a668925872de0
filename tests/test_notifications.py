import json

import httpx
import pytest

from app.config import Settings
from app.domain.entities.notification import Notification, Severity
from app.domain.services.notification_service import NotificationService
from app.infrastructure.notify.notifier import LogNotifier, Notifier
from app.infrastructure.notify.notifier_factory import NotifierFactory
from app.infrastructure.notify.slack_notifier import SlackNotifier


def final_notification() -> Notification:
    return Notification(
        severity=Severity.GOOD,
        message="1.4.2 promoted to production",
        job_id="petclinic-deploy",
        build_id="57",
        final=True,
        duration_seconds=312.4,
        status="success",
        links={"staging": "http://staging/health", "production": "https://prod/health"},
    )


class TestSlackNotifier:
    def test_payload_carries_severity_and_run_identity(self):
        notifier = SlackNotifier("https://hooks.slack.test/x", channel="#deployments")

        payload = notifier.build_payload(final_notification())

        assert payload["channel"] == "#deployments"
        attachment = payload["attachments"][0]
        assert attachment["color"] == "good"
        assert attachment["text"] == "1.4.2 promoted to production"
        fields = {f["title"]: f["value"] for f in attachment["fields"]}
        assert fields["Job"] == "petclinic-deploy"
        assert fields["Build"] == "57"
        assert fields["Status"] == "success"
        assert fields["Duration"] == "312s"
        assert fields["Production"] == "https://prod/health"

    @pytest.mark.asyncio
    async def test_posts_to_webhook(self):
        posted = []

        def handler(request: httpx.Request) -> httpx.Response:
            posted.append(json.loads(request.content))
            return httpx.Response(200, text="ok")

        notifier = SlackNotifier("https://hooks.slack.test/x", transport=httpx.MockTransport(handler))

        assert await notifier.send(final_notification()) is True
        assert posted[0]["attachments"][0]["color"] == "good"
        await notifier.close()

    @pytest.mark.asyncio
    async def test_delivery_failure_returns_false(self):
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("no route", request=request)

        notifier = SlackNotifier("https://hooks.slack.test/x", transport=httpx.MockTransport(handler))

        assert await notifier.send(final_notification()) is False

    @pytest.mark.asyncio
    async def test_webhook_error_status_returns_false(self):
        notifier = SlackNotifier(
            "https://hooks.slack.test/x", transport=httpx.MockTransport(lambda r: httpx.Response(404, text="no_service"))
        )

        assert await notifier.send(final_notification()) is False


class ExplodingNotifier(Notifier):
    async def send(self, notification: Notification) -> bool:
        raise RuntimeError("sink down")


class TestNotificationService:
    @pytest.mark.asyncio
    async def test_emit_does_not_raise_when_sink_fails(self):
        service = NotificationService(ExplodingNotifier(), channel="#ops")

        service.emit(final_notification())
        await service.drain()

        assert len(service.history) == 1
        assert service.history[0].channel == "#ops"

    @pytest.mark.asyncio
    async def test_log_notifier_accepts_everything(self):
        service = NotificationService(LogNotifier())

        service.emit(final_notification())
        await service.drain()

        assert service.history[0].final is True

    @pytest.mark.asyncio
    async def test_history_keeps_only_the_most_recent(self):
        service = NotificationService(LogNotifier(), history_size=2)

        for release in ("1.0", "1.1", "1.2"):
            service.emit(Notification(severity=Severity.GOOD, message=f"{release} deployed", job_id="j", build_id="1"))
        await service.drain()

        assert [n.message for n in service.history] == ["1.1 deployed", "1.2 deployed"]


class TestNotifierFactory:
    def test_webhook_selects_slack(self):
        config = Settings(SLACK_WEBHOOK_URL="https://hooks.slack.test/x")

        assert isinstance(NotifierFactory.create(config), SlackNotifier)
        assert NotifierFactory.get_notifier_type(config) == "slack"

    def test_no_webhook_falls_back_to_log(self):
        config = Settings(SLACK_WEBHOOK_URL=None)

        assert isinstance(NotifierFactory.create(config), LogNotifier)
        assert NotifierFactory.get_notifier_type(config) == "log"
