import asyncio
import logging
import shlex
from typing import Dict, Optional, Sequence

from pydantic import BaseModel

logger = logging.getLogger(__name__)


class CommandResult(BaseModel):
    exit_code: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    def tail(self, lines: int = 20) -> str:
        """Last ``lines`` lines of combined output, for logs and notifications."""
        combined = "\n".join(part for part in (self.stdout, self.stderr) if part)
        return "\n".join(combined.splitlines()[-lines:])


class CommandRunner:
    """Runs external commands and reports their exit status.

    No timeout is enforced: a remote run is awaited until it returns.
    """

    def __init__(self, env: Optional[Dict[str, str]] = None):
        self.env = env

    async def run(self, args: Sequence[str]) -> CommandResult:
        logger.info(f"⚙️ Running: {shlex.join(args)}")
        try:
            process = await asyncio.create_subprocess_exec(
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                env=self.env,
            )
        except FileNotFoundError as e:
            logger.error(f"❌ Command not found: {args[0]}")
            return CommandResult(exit_code=127, stderr=str(e))

        stdout, stderr = await process.communicate()
        result = CommandResult(
            exit_code=process.returncode,
            stdout=stdout.decode("utf-8", errors="replace"),
            stderr=stderr.decode("utf-8", errors="replace"),
        )
        logger.info(f"⚙️ {args[0]} exited with {result.exit_code}")
        return result
