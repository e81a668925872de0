import logging

from app.domain.entities.deployment import DeploymentAttempt
from app.domain.entities.environment import Environment
from app.domain.entities.pipeline_run import PipelineRun
from app.domain.services.notification_service import NotificationService
from app.infrastructure.ansible.ansible_client import AnsibleClient
from app.utils.clock import Clock, system_clock

logger = logging.getLogger(__name__)


class DeploymentExecutor:
    def __init__(self, client: AnsibleClient, notifications: NotificationService, clock: Clock = system_clock):
        self.client = client
        self.notifications = notifications
        self.clock = clock

    async def deploy(self, environment: Environment, run: PipelineRun) -> DeploymentAttempt:
        """
        Run the remote deployment for ``run.release`` against ``environment``.

        Never retries. A non-zero exit yields a failed attempt whose
        ``raise_for_status()`` raises ``DeploymentFailure``.
        """
        # business rule: a target must be addressable
        if not environment.target_host or not environment.target_host.strip():
            raise ValueError(f"Environment {environment.name.value} has no target address")

        attempt = DeploymentAttempt(
            environment=environment.name,
            release=run.release,
            started_at=self.clock.now(),
        )
        result = await self.client.run_playbook(environment, run.release)
        attempt.finalize(result.exit_code, output_tail=result.tail(), finished_at=self.clock.now())

        if attempt.succeeded:
            logger.info(f"✅ Deployed {run.release} to {environment.name.value}")
        else:
            logger.error(
                f"❌ Deployment of {run.release} to {environment.name.value} exited with {result.exit_code}"
            )
        self.notifications.deployment_event(run, attempt)
        return attempt
