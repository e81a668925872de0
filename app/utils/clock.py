import asyncio
from datetime import datetime, timezone


class Clock:
    """Time source used by the verifier, the gate and the controller."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)


system_clock = Clock()
