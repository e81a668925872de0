"""
Health verification: liveness short-circuit, bounded HTTP retries,
and how failures surface through ``raise_for_verdict``.
"""

import pytest

from app.domain.entities.environment import EnvironmentName
from app.domain.entities.health_check import HealthVerdict
from app.domain.errors import VerificationFailure
from app.domain.services.health_service import HealthVerifier
from tests.conftest import STAGING_URL, FakeContainerClient, FakeProbeClient


@pytest.fixture
def verifier_for(clock):
    def build(states=None, scripts=None, default=200):
        containers = FakeContainerClient(states)
        probes = FakeProbeClient(scripts, default=default)
        return HealthVerifier(containers, probes, clock=clock, probe_timeout_seconds=10), containers, probes

    return build


class TestHttpRetries:
    @pytest.mark.asyncio
    async def test_never_200_uses_exactly_max_attempts(self, verifier_for, staging, clock):
        verifier, _, probes = verifier_for(default=503)

        result = await verifier.verify(staging, max_attempts=3, interval=30)

        assert result.verdict == HealthVerdict.UNHEALTHY
        assert result.attempts == 3
        assert probes.count(STAGING_URL) == 3
        assert result.http_status == 503
        assert clock.sleeps == [30, 30]

    @pytest.mark.parametrize("max_attempts", [1, 2, 5])
    @pytest.mark.asyncio
    async def test_attempt_budget_is_respected(self, verifier_for, staging, max_attempts):
        verifier, _, probes = verifier_for(default=500)

        result = await verifier.verify(staging, max_attempts=max_attempts, interval=1)

        assert result.attempts == max_attempts
        assert probes.count(STAGING_URL) == max_attempts

    @pytest.mark.asyncio
    async def test_200_on_second_attempt_is_healthy(self, verifier_for, staging, clock):
        verifier, _, probes = verifier_for(scripts={STAGING_URL: [502, 200, 200]})

        result = await verifier.verify(staging, max_attempts=3, interval=30)

        assert result.verdict == HealthVerdict.HEALTHY
        assert result.attempts == 2
        assert probes.count(STAGING_URL) == 2
        assert result.http_status == 200
        assert clock.sleeps == [30]

    @pytest.mark.asyncio
    async def test_transport_errors_consume_attempts(self, verifier_for, staging):
        verifier, _, probes = verifier_for(scripts={STAGING_URL: ["ConnectError: refused", "ReadTimeout", 200]})

        result = await verifier.verify(staging, max_attempts=3, interval=0)

        assert result.healthy
        assert result.attempts == 3
        assert [p.error for p in result.probes[:2]] == ["ConnectError: refused", "ReadTimeout"]

    @pytest.mark.asyncio
    async def test_only_200_counts_as_healthy(self, verifier_for, staging):
        verifier, _, _ = verifier_for(scripts={STAGING_URL: [204, 301, 299]})

        result = await verifier.verify(staging, max_attempts=3, interval=0)

        assert result.verdict == HealthVerdict.UNHEALTHY

    @pytest.mark.asyncio
    async def test_probe_uses_configured_timeout(self, verifier_for, staging):
        verifier, _, probes = verifier_for()

        await verifier.verify(staging)

        assert probes.timeouts == [10]


class TestLiveness:
    @pytest.mark.parametrize("state", ["exited", "restarting", ""])
    @pytest.mark.asyncio
    async def test_not_running_short_circuits(self, verifier_for, staging, clock, state):
        verifier, containers, probes = verifier_for(states={EnvironmentName.STAGING: state})

        result = await verifier.verify(staging, max_attempts=3, interval=30)

        assert result.verdict == HealthVerdict.UNHEALTHY
        assert result.service_running is False
        assert result.attempts == 0
        assert probes.calls == []
        assert clock.sleeps == []
        assert containers.calls == [EnvironmentName.STAGING]


class TestRaiseForVerdict:
    @pytest.mark.asyncio
    async def test_unhealthy_raises_verification_failure(self, verifier_for, staging):
        verifier, _, _ = verifier_for(default=503)
        result = await verifier.verify(staging, interval=0)

        with pytest.raises(VerificationFailure) as excinfo:
            result.raise_for_verdict()

        assert excinfo.value.kind == "verification_failure"
        assert excinfo.value.environment == "staging"
        assert "503" in excinfo.value.message

    @pytest.mark.asyncio
    async def test_healthy_does_not_raise(self, verifier_for, staging):
        verifier, _, _ = verifier_for()
        result = await verifier.verify(staging)

        result.raise_for_verdict()

    @pytest.mark.asyncio
    async def test_result_is_frozen_once_terminal(self, verifier_for, staging):
        verifier, _, _ = verifier_for()
        result = await verifier.verify(staging)

        with pytest.raises(RuntimeError):
            result.conclude(HealthVerdict.UNHEALTHY)
