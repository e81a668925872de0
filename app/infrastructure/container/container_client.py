import logging
from typing import List, Optional

from app.domain.entities.environment import Environment
from app.infrastructure.shell.command_runner import CommandRunner

logger = logging.getLogger(__name__)


class ContainerStatusClient:
    """Reads a container's run state on a remote host over ssh."""

    def __init__(
        self,
        runner: CommandRunner,
        ssh_bin: str = "ssh",
        ssh_user: Optional[str] = None,
        engine: str = "docker",
    ):
        self.runner = runner
        self.ssh_bin = ssh_bin
        self.ssh_user = ssh_user
        self.engine = engine

    def _host(self, host: str) -> str:
        if self.ssh_user and "@" not in host:
            return f"{self.ssh_user}@{host}"
        return host

    def build_command(self, environment: Environment) -> List[str]:
        args = [self.ssh_bin, "-o", "BatchMode=yes"]
        if environment.bastion_host:
            args.extend(["-J", self._host(environment.bastion_host)])
        args.extend([
            self._host(environment.target_host),
            self.engine, "inspect",
            "--format", "'{{.State.Status}}'",
            environment.service_name,
        ])
        return args

    async def service_state(self, environment: Environment) -> str:
        """Return the service's state (``"running"`` when up), or ``""`` if unknown."""
        result = await self.runner.run(self.build_command(environment))
        if not result.ok:
            logger.warning(
                f"⚠️ Could not inspect {environment.service_name} on {environment.target_host}: "
                f"exit {result.exit_code} {result.stderr.strip()}"
            )
            return ""
        return result.stdout.strip().strip("'\"")
