"""
Staging-to-production promotion.

``PromotionController`` drives a single run through its stages strictly in
order; ``RunRegistry`` owns the runs of this process and makes sure at most
one of them is in flight.
"""

import asyncio
import logging
from collections import OrderedDict
from dataclasses import dataclass
from typing import Callable, Dict, Optional

from app.domain.entities.approval import ApprovalDecision
from app.domain.entities.environment import Environment, EnvironmentName, PromotionPolicy
from app.domain.entities.pipeline_run import PipelineRun, RunStatus, StageRecord
from app.domain.errors import GateClosedError, PromotionError, RunAborted, RunAlreadyActive
from app.domain.services.approval_service import PromotionGate
from app.domain.services.deploy_service import DeploymentExecutor
from app.domain.services.health_service import HealthVerifier
from app.domain.services.notification_service import NotificationService
from app.utils.clock import Clock, system_clock

logger = logging.getLogger(__name__)


class PromotionController:
    def __init__(
        self,
        executor: DeploymentExecutor,
        verifier: HealthVerifier,
        notifications: NotificationService,
        load_environments: Callable[[], Dict[EnvironmentName, Environment]],
        policy: PromotionPolicy,
        clock: Clock = system_clock,
    ):
        self.executor = executor
        self.verifier = verifier
        self.notifications = notifications
        self.load_environments = load_environments
        self.policy = policy
        self.clock = clock

    async def run(self, run: PipelineRun, gate: PromotionGate) -> PipelineRun:
        """Promote ``run.release`` through staging, the gate and production."""
        logger.info(f"🚦 Starting promotion run {run.run_id} for {run.release}")
        links: Dict[str, str] = {}
        try:
            # loaded per run; a configuration error ends the run, not the process
            environments = self.load_environments()
            links = {env.name.value: env.health_url for env in environments.values()}

            await self._deploy_and_verify(run, environments[EnvironmentName.STAGING])

            self._check_abort(run)
            self.notifications.approval_requested(run, self.policy.approval_timeout_seconds)
            run.approval = await gate.request_approval(self.policy.approval_timeout_seconds)
            self._check_abort(run)
            run.approval.raise_for_decision()

            self._ensure_promotable(run)
            await self._deploy_and_verify(run, environments[EnvironmentName.PRODUCTION])
        except PromotionError as e:
            logger.error(f"❌ Run {run.run_id} failed: {e.kind}: {e.message}")
            run.complete(
                RunStatus.FAILURE,
                finished_at=self.clock.now(),
                failure_kind=e.kind,
                failure_reason=e.message,
            )
        except Exception as e:
            logger.exception(f"💥 Run {run.run_id} crashed: {e}")
            run.complete(
                RunStatus.FAILURE,
                finished_at=self.clock.now(),
                failure_kind="internal_error",
                failure_reason=f"{type(e).__name__}: {e}",
            )
        else:
            logger.info(f"🎉 Run {run.run_id} promoted {run.release} to production")
            run.complete(RunStatus.SUCCESS, finished_at=self.clock.now())

        self.notifications.run_finished(run, links=links)
        return run

    async def _deploy_and_verify(self, run: PipelineRun, environment: Environment) -> StageRecord:
        self._check_abort(run)
        attempt = await self.executor.deploy(environment, run)
        record = StageRecord(environment=environment.name, deployment=attempt)
        run.stages.append(record)

        if attempt.succeeded:
            record.health = await self.verifier.verify(
                environment,
                max_attempts=self.policy.max_attempts,
                interval=self.policy.interval_seconds,
            )
        self.notifications.stage_summary(run, environment, attempt, record.health)

        attempt.raise_for_status()
        record.health.raise_for_verdict()
        return record

    def _ensure_promotable(self, run: PipelineRun) -> None:
        staging = run.stage(EnvironmentName.STAGING)
        if staging is None or not staging.passed or run.approval is None or not run.approval.approved:
            raise RuntimeError(f"Run {run.run_id} reached production without a healthy, approved staging")

    def _check_abort(self, run: PipelineRun) -> None:
        if run.abort_requested:
            raise RunAborted(f"Run {run.run_id} aborted by operator")


@dataclass
class ActiveRun:
    run: PipelineRun
    gate: PromotionGate
    task: asyncio.Task


class RunRegistry:
    """Starts runs and tracks the single in-flight one."""

    def __init__(self, controller: PromotionController, history_size: int = 20):
        self.controller = controller
        self.history_size = history_size
        self._runs: "OrderedDict[str, PipelineRun]" = OrderedDict()
        self._active: Optional[ActiveRun] = None
        self._lock = asyncio.Lock()

    @property
    def active(self) -> Optional[ActiveRun]:
        if self._active is not None and not self._active.task.done():
            return self._active
        return None

    async def start(self, release: str, job_id: str, build_id: str, supersede: bool = False) -> PipelineRun:
        """
        Start a run in the background.

        Raises:
            RunAlreadyActive: If a run is in flight and ``supersede`` is False
        """
        async with self._lock:
            current = self.active
            if current is not None:
                if not supersede:
                    raise RunAlreadyActive(f"Run {current.run.run_id} is still in progress")
                logger.warning(f"⏭️ Superseding run {current.run.run_id}")
                self.abort(current.run.run_id, responder="superseded")
                await asyncio.shield(current.task)

            run = PipelineRun(release=release, job_id=job_id, build_id=build_id, started_at=self.controller.clock.now())
            gate = PromotionGate(clock=self.controller.clock)
            task = asyncio.get_running_loop().create_task(self.controller.run(run, gate))
            self._active = ActiveRun(run=run, gate=gate, task=task)
            self._remember(run)
            return run

    def _remember(self, run: PipelineRun) -> None:
        self._runs[run.run_id] = run
        while len(self._runs) > self.history_size:
            self._runs.popitem(last=False)

    def get(self, run_id: str) -> Optional[PipelineRun]:
        return self._runs.get(run_id)

    def current(self) -> Optional[PipelineRun]:
        return self._active.run if self._active is not None else None

    def _require_active(self, run_id: str) -> ActiveRun:
        active = self.active
        if active is None or active.run.run_id != run_id:
            raise GateClosedError(f"Run {run_id} is not in progress")
        return active

    def submit_approval(
        self, run_id: str, approved: bool, responder: str, comment: Optional[str] = None
    ) -> ApprovalDecision:
        active = self._require_active(run_id)
        decision = active.gate.submit(approved, responder=responder, comment=comment)
        logger.info(f"🗳️ Run {run_id}: {decision.decision.value} by {responder}")
        return decision

    def abort(self, run_id: str, responder: str) -> PipelineRun:
        """Ask the run to stop at its next stage boundary."""
        active = self._require_active(run_id)
        active.run.abort_requested = True
        if active.gate.is_open:
            active.gate.submit(False, responder=responder, comment="run aborted")
        logger.warning(f"🛑 Abort requested for run {run_id} by {responder}")
        return active.run

    async def wait(self, run_id: str) -> PipelineRun:
        """Wait for ``run_id`` to finish, if it is the active run."""
        if self._active is not None and self._active.run.run_id == run_id:
            await asyncio.shield(self._active.task)
        run = self.get(run_id)
        if run is None:
            raise KeyError(run_id)
        return run

    async def shutdown(self) -> None:
        active = self.active
        if active is not None:
            self.abort(active.run.run_id, responder="shutdown")
            await asyncio.shield(active.task)
        await self.controller.notifications.drain()
