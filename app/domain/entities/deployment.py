import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from app.domain.entities.environment import EnvironmentName
from app.domain.errors import DeploymentFailure


class DeploymentStatus(str, Enum):
    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


class DeploymentAttempt(BaseModel):
    attempt_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    environment: EnvironmentName
    release: str
    started_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: Optional[datetime] = None
    exit_code: Optional[int] = None
    status: DeploymentStatus = DeploymentStatus.PENDING
    output_tail: str = ""

    @property
    def succeeded(self) -> bool:
        return self.status == DeploymentStatus.SUCCEEDED

    def finalize(self, exit_code: int, output_tail: str = "", finished_at: Optional[datetime] = None) -> None:
        if self.status != DeploymentStatus.PENDING:
            raise RuntimeError(f"Deployment attempt {self.attempt_id} is already finalized")
        self.exit_code = exit_code
        self.output_tail = output_tail
        self.finished_at = finished_at or datetime.now(timezone.utc)
        self.status = DeploymentStatus.SUCCEEDED if exit_code == 0 else DeploymentStatus.FAILED

    def raise_for_status(self) -> None:
        """Raise ``DeploymentFailure`` if the remote run did not exit cleanly."""
        if self.status == DeploymentStatus.FAILED:
            raise DeploymentFailure(self.environment.value, self.exit_code)
