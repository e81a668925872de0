from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from app.domain.entities.approval import ApprovalDecision
from app.domain.entities.pipeline_run import PipelineRun, StageRecord


class StartRunRequest(BaseModel):
    release: str = Field(..., min_length=1, description="Version or image tag to promote")
    job_id: Optional[str] = None
    build_id: Optional[str] = None
    supersede: bool = Field(False, description="Abort the in-flight run instead of failing with 409")


class ApprovalRequest(BaseModel):
    decision: Literal["approve", "reject"]
    responder: Optional[str] = Field(None, description="Defaults to the authenticated user")
    comment: Optional[str] = None


class RunResponse(BaseModel):
    run_id: str
    release: str
    job_id: str
    build_id: str
    status: str
    started_at: datetime
    finished_at: Optional[datetime] = None
    duration_seconds: Optional[float] = None
    stages: List[StageRecord]
    approval: Optional[ApprovalDecision] = None
    awaiting_approval: bool = False
    failure_kind: Optional[str] = None
    failure_reason: Optional[str] = None

    @classmethod
    def from_run(cls, run: PipelineRun, awaiting_approval: bool = False) -> "RunResponse":
        return cls(
            run_id=run.run_id,
            release=run.release,
            job_id=run.job_id,
            build_id=run.build_id,
            status=run.status.value,
            started_at=run.started_at,
            finished_at=run.finished_at,
            duration_seconds=run.duration_seconds,
            stages=run.stages,
            approval=run.approval,
            awaiting_approval=awaiting_approval,
            failure_kind=run.failure_kind,
            failure_reason=run.failure_reason,
        )
