import logging

from app.domain.entities.environment import Environment
from app.domain.entities.health_check import (
    RUNNING_STATE,
    HealthCheckResult,
    HealthVerdict,
    ProbeOutcome,
)
from app.domain.retry import RetryPolicy
from app.infrastructure.container.container_client import ContainerStatusClient
from app.infrastructure.health.http_probe_client import HttpProbeClient
from app.utils.clock import Clock, system_clock

logger = logging.getLogger(__name__)


class HealthVerifier:
    def __init__(
        self,
        container_client: ContainerStatusClient,
        probe_client: HttpProbeClient,
        clock: Clock = system_clock,
        probe_timeout_seconds: float = 10.0,
    ):
        self.container_client = container_client
        self.probe_client = probe_client
        self.clock = clock
        self.probe_timeout_seconds = probe_timeout_seconds

    async def verify(
        self,
        environment: Environment,
        max_attempts: int = 3,
        interval: float = 30.0,
    ) -> HealthCheckResult:
        """
        Check that ``environment`` is up and serving.

        The service must first report the ``running`` state; if it does not,
        the result is unhealthy without any HTTP probe. Otherwise the health
        URL is probed up to ``max_attempts`` times, ``interval`` seconds apart,
        until it answers 200. Request errors and non-200 answers both use up
        an attempt.
        """
        result = HealthCheckResult(environment=environment.name)

        state = await self.container_client.service_state(environment)
        result.service_state = state
        result.service_running = state == RUNNING_STATE
        if not result.service_running:
            logger.error(
                f"❌ {environment.service_name} on {environment.name.value} is "
                f"'{state or 'unknown'}', skipping HTTP probes"
            )
            result.conclude(HealthVerdict.UNHEALTHY)
            return result

        logger.info(f"✅ {environment.service_name} is running on {environment.name.value}")

        policy: RetryPolicy[ProbeOutcome] = RetryPolicy(
            max_attempts=max_attempts,
            interval_seconds=interval,
            predicate=lambda outcome: outcome.ok,
        )

        async def probe() -> ProbeOutcome:
            return await self.probe_client.probe(environment.health_url, timeout=self.probe_timeout_seconds)

        def record(attempt: int, outcome: ProbeOutcome) -> None:
            result.record_probe(outcome)
            if not outcome.ok:
                observed = outcome.status_code if outcome.status_code is not None else outcome.error
                logger.warning(
                    f"⚠️ {environment.name.value} health probe {attempt}/{max_attempts}: {observed}"
                )

        outcome = await policy.run(probe, clock=self.clock, on_attempt=record)
        result.conclude(HealthVerdict.HEALTHY if outcome.succeeded else HealthVerdict.UNHEALTHY)

        if result.healthy:
            logger.info(f"✅ {environment.name.value} healthy after {result.attempts} probe(s)")
        else:
            logger.error(f"❌ {environment.name.value} unhealthy after {result.attempts} probe(s)")
        return result
