"""
Status notifications for promotion runs.

Builds the notification payloads (deployment events, stage summaries,
gate openings and the end-of-run summary) and hands them to the
configured sink without waiting for delivery.
"""

import asyncio
import logging
from collections import deque
from typing import Deque, Dict, Optional, Set

from app.domain.entities.deployment import DeploymentAttempt
from app.domain.entities.environment import Environment
from app.domain.entities.health_check import HealthCheckResult
from app.domain.entities.notification import Notification, Severity
from app.domain.entities.pipeline_run import PipelineRun, RunStatus
from app.infrastructure.notify.notifier import Notifier

logger = logging.getLogger(__name__)


class NotificationService:
    def __init__(self, notifier: Notifier, channel: Optional[str] = None, history_size: int = 200):
        self.notifier = notifier
        self.channel = channel
        self.history: Deque[Notification] = deque(maxlen=history_size)
        self._pending: Set[asyncio.Task] = set()

    def emit(self, notification: Notification) -> None:
        """Record ``notification`` and dispatch it in the background."""
        if notification.channel is None:
            notification.channel = self.channel
        self.history.append(notification)
        task = asyncio.get_running_loop().create_task(self._deliver(notification))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _deliver(self, notification: Notification) -> None:
        try:
            delivered = await self.notifier.send(notification)
        except Exception as e:
            logger.error(f"❌ Notifier raised while sending '{notification.message}': {e}")
            return
        if not delivered:
            logger.warning(f"⚠️ Notification not delivered: {notification.message}")

    async def drain(self) -> None:
        """Wait for in-flight deliveries. Used at shutdown and in tests."""
        if self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)

    def deployment_event(self, run: PipelineRun, attempt: DeploymentAttempt) -> None:
        env = attempt.environment.value
        if attempt.succeeded:
            severity, message = Severity.GOOD, f"✅ Deployed {run.release} to {env}"
        else:
            severity = Severity.DANGER
            message = f"❌ Deployment of {run.release} to {env} failed (exit code {attempt.exit_code})"
        self.emit(Notification(severity=severity, message=message, job_id=run.job_id, build_id=run.build_id))

    def stage_summary(
        self,
        run: PipelineRun,
        environment: Environment,
        attempt: DeploymentAttempt,
        health: Optional[HealthCheckResult],
    ) -> None:
        env = environment.name.value
        if not attempt.succeeded:
            severity = Severity.DANGER
            message = f"❌ {env}: deployment failed, verification skipped"
        elif health is not None and health.healthy:
            severity = Severity.GOOD
            message = f"✅ {env}: {environment.service_name} healthy after {health.attempts} probe(s)"
        elif health is not None and not health.service_running:
            severity = Severity.DANGER
            message = f"❌ {env}: {environment.service_name} is not running"
        else:
            attempts = health.attempts if health is not None else 0
            severity = Severity.DANGER
            message = f"❌ {env}: health check failed after {attempts} probe(s) against {environment.health_url}"
        self.emit(Notification(severity=severity, message=message, job_id=run.job_id, build_id=run.build_id))

    def approval_requested(self, run: PipelineRun, timeout_seconds: float) -> None:
        self.emit(
            Notification(
                severity=Severity.WARNING,
                message=(
                    f"⏸️ {run.release} passed staging. Approve production promotion of run "
                    f"{run.run_id} within {timeout_seconds / 60:g} minute(s)"
                ),
                job_id=run.job_id,
                build_id=run.build_id,
            )
        )

    def run_finished(self, run: PipelineRun, links: Dict[str, str]) -> None:
        """The one end-of-run notification."""
        if run.status == RunStatus.SUCCESS:
            severity = Severity.GOOD
            message = f"🎉 {run.release} promoted to production"
        else:
            severity = Severity.DANGER
            message = f"💥 Promotion of {run.release} failed: {run.failure_reason or run.failure_kind}"
        self.emit(
            Notification(
                severity=severity,
                message=message,
                job_id=run.job_id,
                build_id=run.build_id,
                final=True,
                duration_seconds=run.duration_seconds,
                status=run.status.value,
                links=links,
            )
        )
