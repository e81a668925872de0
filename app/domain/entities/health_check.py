from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from app.domain.entities.environment import EnvironmentName
from app.domain.errors import VerificationFailure

RUNNING_STATE = "running"
HEALTHY_STATUS_CODE = 200


class HealthVerdict(str, Enum):
    PENDING = "pending"
    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


class ProbeOutcome(BaseModel):
    """One HTTP GET against a health endpoint."""

    status_code: Optional[int] = None
    error: Optional[str] = None
    observed_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def ok(self) -> bool:
        return self.status_code == HEALTHY_STATUS_CODE


class HealthCheckResult(BaseModel):
    environment: EnvironmentName
    service_running: bool = False
    service_state: str = ""
    http_status: Optional[int] = None
    attempts: int = 0
    verdict: HealthVerdict = HealthVerdict.PENDING
    probes: List[ProbeOutcome] = Field(default_factory=list)

    @property
    def healthy(self) -> bool:
        return self.verdict == HealthVerdict.HEALTHY

    @property
    def terminal(self) -> bool:
        return self.verdict != HealthVerdict.PENDING

    def record_probe(self, outcome: ProbeOutcome) -> None:
        if self.terminal:
            raise RuntimeError("Health check result is already terminal")
        self.probes.append(outcome)
        self.attempts = len(self.probes)
        self.http_status = outcome.status_code

    def conclude(self, verdict: HealthVerdict) -> None:
        if self.terminal:
            raise RuntimeError("Health check result is already terminal")
        self.verdict = verdict

    def raise_for_verdict(self) -> None:
        """Raise ``VerificationFailure`` unless the target was found healthy."""
        if self.verdict == HealthVerdict.HEALTHY:
            return
        if not self.service_running:
            reason = f"service state is '{self.service_state or 'unknown'}'"
        elif self.probes and self.probes[-1].error:
            reason = f"last probe failed: {self.probes[-1].error}"
        else:
            reason = f"last status {self.http_status}"
        raise VerificationFailure(
            f"{self.environment.value} is unhealthy after {self.attempts} probe(s): {reason}",
            environment=self.environment.value,
        )
