import logging
from typing import List, Optional

from app.domain.entities.environment import Environment
from app.infrastructure.shell.command_runner import CommandResult, CommandRunner

logger = logging.getLogger(__name__)


def proxy_jump_args(bastion_host: Optional[str], ssh_user: Optional[str] = None) -> Optional[str]:
    """ssh options routing a connection through ``bastion_host``, if any."""
    if not bastion_host:
        return None
    jump = f"{ssh_user}@{bastion_host}" if ssh_user and "@" not in bastion_host else bastion_host
    return f"-o ProxyJump={jump}"


class AnsibleClient:
    def __init__(
        self,
        runner: CommandRunner,
        inventory: str,
        playbook: str,
        binary: str = "ansible-playbook",
        ssh_user: Optional[str] = None,
    ):
        self.runner = runner
        self.inventory = inventory
        self.playbook = playbook
        self.binary = binary
        self.ssh_user = ssh_user

    def build_command(self, environment: Environment, release: str) -> List[str]:
        args = [
            self.binary,
            "-i", self.inventory,
            self.playbook,
            "--limit", environment.target_host,
            "-e", f"target_environment={environment.name.value}",
            "-e", f"release_version={release}",
        ]
        if self.ssh_user:
            args.extend(["-u", self.ssh_user])
        jump = proxy_jump_args(environment.bastion_host, self.ssh_user)
        if jump:
            args.extend(["-e", f"ansible_ssh_common_args='{jump}'"])
        return args

    async def run_playbook(self, environment: Environment, release: str) -> CommandResult:
        """Trigger the configuration-management run against ``environment``."""
        logger.info(f"🚀 Running playbook {self.playbook} against {environment.name.value} ({environment.target_host})")
        return await self.runner.run(self.build_command(environment, release))
