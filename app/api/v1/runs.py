import logging

from fastapi import APIRouter, Depends, HTTPException, status

from app.config import settings
from app.dependencies import get_run_registry, require_approver, require_read_runs, require_start_run
from app.domain.entities.approval import ApprovalDecision
from app.domain.services.promotion_service import RunRegistry
from app.schemas.auth import UserPrincipal
from app.schemas.runs import ApprovalRequest, RunResponse, StartRunRequest

logger = logging.getLogger(__name__)

router = APIRouter(tags=["runs"])


def _to_response(registry: RunRegistry, run) -> RunResponse:
    active = registry.active
    awaiting = active is not None and active.run.run_id == run.run_id and active.gate.is_open
    return RunResponse.from_run(run, awaiting_approval=awaiting)


@router.post("/runs", response_model=RunResponse, status_code=status.HTTP_202_ACCEPTED)
async def start_run(
    request: StartRunRequest,
    user: UserPrincipal = Depends(require_start_run),
    registry: RunRegistry = Depends(get_run_registry),
):
    """Start promoting a release - requires 'deploy_staging' or 'deploy_production'."""
    run = await registry.start(
        release=request.release,
        job_id=request.job_id or settings.JOB_NAME,
        build_id=request.build_id or settings.BUILD_ID,
        supersede=request.supersede,
    )

    logger.info(f"🚀 Run {run.run_id} for {run.release} started by {user.display_name}")
    return _to_response(registry, run)


@router.get("/runs/current", response_model=RunResponse, dependencies=[Depends(require_read_runs)])
async def get_current_run(registry: RunRegistry = Depends(get_run_registry)):
    run = registry.current()
    if run is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="No run has been started")
    return _to_response(registry, run)


@router.get("/runs/{run_id}", response_model=RunResponse, dependencies=[Depends(require_read_runs)])
async def get_run(run_id: str, registry: RunRegistry = Depends(get_run_registry)):
    run = registry.get(run_id)
    if run is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Run {run_id} not found")
    return _to_response(registry, run)


@router.post("/runs/{run_id}/approval", response_model=ApprovalDecision)
async def submit_approval(
    run_id: str,
    request: ApprovalRequest,
    user: UserPrincipal = Depends(require_approver),
    registry: RunRegistry = Depends(get_run_registry),
):
    """Approve or reject production promotion - requires 'approve_production'."""
    if registry.get(run_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Run {run_id} not found")
    return registry.submit_approval(
        run_id,
        approved=request.decision == "approve",
        responder=request.responder or user.display_name,
        comment=request.comment,
    )


@router.post("/runs/{run_id}/abort", response_model=RunResponse)
async def abort_run(
    run_id: str,
    user: UserPrincipal = Depends(require_start_run),
    registry: RunRegistry = Depends(get_run_registry),
):
    """Stop a run at its next stage boundary."""
    if registry.get(run_id) is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Run {run_id} not found")
    run = registry.abort(run_id, responder=user.display_name)
    return _to_response(registry, run)
