"""
Shared fixtures for the promotion controller tests.

Every external collaborator (remote deploy, container inspection, HTTP
probe, chat sink, wall clock) is replaced with an in-memory fake so the
workflow can be driven deterministically.
"""

from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Union

import pytest

from app.domain.entities.environment import Environment, EnvironmentName, PromotionPolicy
from app.domain.entities.health_check import ProbeOutcome
from app.domain.entities.notification import Notification
from app.domain.entities.pipeline_run import PipelineRun
from app.domain.services.deploy_service import DeploymentExecutor
from app.domain.services.health_service import HealthVerifier
from app.domain.services.notification_service import NotificationService
from app.domain.services.promotion_service import PromotionController, RunRegistry
from app.infrastructure.notify.notifier import Notifier
from app.infrastructure.shell.command_runner import CommandResult
from app.utils.clock import Clock


class FakeClock(Clock):
    def __init__(self, start: Optional[datetime] = None):
        self.current = start or datetime(2026, 1, 1, 12, 0, tzinfo=timezone.utc)
        self.sleeps: List[float] = []

    def now(self) -> datetime:
        return self.current

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.current += timedelta(seconds=seconds)


class FakeAnsibleClient:
    def __init__(self, exit_codes: Optional[Dict[EnvironmentName, int]] = None):
        self.exit_codes = exit_codes or {}
        self.calls: List[tuple] = []

    async def run_playbook(self, environment: Environment, release: str) -> CommandResult:
        self.calls.append((environment.name, release))
        code = self.exit_codes.get(environment.name, 0)
        return CommandResult(exit_code=code, stdout="PLAY RECAP", stderr="" if code == 0 else "fatal: failed")

    def deployed_to(self, name: EnvironmentName) -> int:
        return sum(1 for env, _ in self.calls if env == name)


class FakeContainerClient:
    def __init__(self, states: Optional[Dict[EnvironmentName, str]] = None):
        self.states = states or {}
        self.calls: List[EnvironmentName] = []

    async def service_state(self, environment: Environment) -> str:
        self.calls.append(environment.name)
        return self.states.get(environment.name, "running")


Scripted = Union[int, str]


class FakeProbeClient:
    """Replays scripted answers per URL: an int is a status code, a str a transport error."""

    def __init__(self, scripts: Optional[Dict[str, List[Scripted]]] = None, default: Scripted = 200):
        self.scripts = {url: list(answers) for url, answers in (scripts or {}).items()}
        self.default = default
        self.calls: List[str] = []
        self.timeouts: List[float] = []

    async def probe(self, url: str, timeout: float = 10.0) -> ProbeOutcome:
        self.calls.append(url)
        self.timeouts.append(timeout)
        answers = self.scripts.get(url)
        answer = answers.pop(0) if answers else self.default
        if isinstance(answer, str):
            return ProbeOutcome(error=answer)
        return ProbeOutcome(status_code=answer)

    def count(self, url: str) -> int:
        return self.calls.count(url)


class RecordingNotifier(Notifier):
    def __init__(self):
        self.sent: List[Notification] = []

    async def send(self, notification: Notification) -> bool:
        self.sent.append(notification)
        return True


STAGING_URL = "http://staging.internal:8080/health"
PRODUCTION_URL = "https://app.example.com/health"


@pytest.fixture
def staging() -> Environment:
    return Environment(
        name=EnvironmentName.STAGING,
        target_host="10.0.1.20",
        health_url=STAGING_URL,
        service_name="petclinic",
    )


@pytest.fixture
def production() -> Environment:
    return Environment(
        name=EnvironmentName.PRODUCTION,
        target_host="10.0.2.20",
        bastion_host="bastion.example.com",
        health_url=PRODUCTION_URL,
        service_name="petclinic",
    )


@pytest.fixture
def policy() -> PromotionPolicy:
    return PromotionPolicy(max_attempts=3, interval_seconds=30, probe_timeout_seconds=10, approval_timeout_seconds=0.2)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def ansible() -> FakeAnsibleClient:
    return FakeAnsibleClient()


@pytest.fixture
def containers() -> FakeContainerClient:
    return FakeContainerClient()


@pytest.fixture
def probes() -> FakeProbeClient:
    return FakeProbeClient()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
def notifications(notifier) -> NotificationService:
    return NotificationService(notifier, channel="#deployments")


@pytest.fixture
def controller(ansible, containers, probes, notifications, staging, production, policy, clock) -> PromotionController:
    return PromotionController(
        executor=DeploymentExecutor(ansible, notifications, clock=clock),
        verifier=HealthVerifier(containers, probes, clock=clock, probe_timeout_seconds=policy.probe_timeout_seconds),
        notifications=notifications,
        load_environments=lambda: {EnvironmentName.STAGING: staging, EnvironmentName.PRODUCTION: production},
        policy=policy,
        clock=clock,
    )


@pytest.fixture
def registry(controller) -> RunRegistry:
    return RunRegistry(controller)


@pytest.fixture
def pipeline_run(clock) -> PipelineRun:
    return PipelineRun(release="1.4.2", job_id="petclinic-deploy", build_id="57", started_at=clock.now())
