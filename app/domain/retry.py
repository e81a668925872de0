"""
Bounded retry policy.

The policy owns the loop (attempt count, fixed interval, success predicate)
and knows nothing about what is being retried, so health probing can be
driven with a fake clock and a fake transport in tests.
"""

import logging
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Generic, List, Optional, TypeVar

from app.utils.clock import Clock, system_clock

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RetryOutcome(Generic[T]):
    value: Optional[T]
    attempts: int
    succeeded: bool
    history: List[T] = field(default_factory=list)


@dataclass(frozen=True)
class RetryPolicy(Generic[T]):
    max_attempts: int
    interval_seconds: float
    predicate: Callable[[T], bool]

    def __post_init__(self):
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        if self.interval_seconds < 0:
            raise ValueError("interval_seconds must not be negative")

    async def run(
        self,
        call: Callable[[], Awaitable[T]],
        clock: Clock = system_clock,
        on_attempt: Optional[Callable[[int, T], None]] = None,
    ) -> RetryOutcome[T]:
        """
        Invoke ``call`` until ``predicate`` accepts its result or attempts run out.

        Sleeps ``interval_seconds`` between attempts, never after the last one.
        ``on_attempt`` receives the 1-based attempt number and the value.
        """
        history: List[T] = []
        value: Optional[T] = None
        for attempt in range(1, self.max_attempts + 1):
            value = await call()
            history.append(value)
            if on_attempt is not None:
                on_attempt(attempt, value)
            if self.predicate(value):
                return RetryOutcome(value=value, attempts=attempt, succeeded=True, history=history)
            if attempt < self.max_attempts:
                logger.info(
                    f"🔁 Attempt {attempt}/{self.max_attempts} not accepted, "
                    f"retrying in {self.interval_seconds:g}s"
                )
                await clock.sleep(self.interval_seconds)
        return RetryOutcome(value=value, attempts=self.max_attempts, succeeded=False, history=history)
