import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from app.domain.entities.approval import ApprovalDecision
from app.domain.entities.deployment import DeploymentAttempt
from app.domain.entities.environment import EnvironmentName
from app.domain.entities.health_check import HealthCheckResult


class RunStatus(str, Enum):
    RUNNING = "running"
    SUCCESS = "success"
    FAILURE = "failure"


class StageRecord(BaseModel):
    """The deployment attempt and verification of one environment."""

    environment: EnvironmentName
    deployment: DeploymentAttempt
    health: Optional[HealthCheckResult] = None

    @property
    def passed(self) -> bool:
        return self.deployment.succeeded and self.health is not None and self.health.healthy


class PipelineRun(BaseModel):
    run_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    release: str
    job_id: str
    build_id: str
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: Optional[datetime] = None
    stages: List[StageRecord] = Field(default_factory=list)
    approval: Optional[ApprovalDecision] = None
    status: RunStatus = RunStatus.RUNNING
    failure_kind: Optional[str] = None
    failure_reason: Optional[str] = None
    abort_requested: bool = False

    def stage(self, environment: EnvironmentName) -> Optional[StageRecord]:
        for record in self.stages:
            if record.environment == environment:
                return record
        return None

    @property
    def deployments(self) -> List[DeploymentAttempt]:
        return [record.deployment for record in self.stages]

    @property
    def health_checks(self) -> List[HealthCheckResult]:
        return [record.health for record in self.stages if record.health is not None]

    @property
    def finished(self) -> bool:
        return self.status != RunStatus.RUNNING

    @property
    def duration_seconds(self) -> Optional[float]:
        if self.finished_at is None:
            return None
        return (self.finished_at - self.started_at).total_seconds()

    def complete(self, status: RunStatus, finished_at: Optional[datetime] = None,
                 failure_kind: Optional[str] = None, failure_reason: Optional[str] = None) -> None:
        if self.finished:
            raise RuntimeError(f"Run {self.run_id} already finished as {self.status.value}")
        self.status = status
        self.failure_kind = failure_kind
        self.failure_reason = failure_reason
        self.finished_at = finished_at or datetime.now(timezone.utc)
