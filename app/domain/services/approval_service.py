import asyncio
import logging
from typing import Optional

from app.domain.entities.approval import ApprovalDecision, ApprovalOutcome
from app.domain.errors import GateClosedError
from app.utils.clock import Clock, system_clock

logger = logging.getLogger(__name__)


class PromotionGate:
    """
    Holds a run before production until someone approves or rejects it.

    One gate belongs to one run and settles exactly once: the first
    ``submit`` wins, and a gate that timed out stays timed out.
    """

    def __init__(self, clock: Clock = system_clock):
        self.clock = clock
        self.decision: Optional[ApprovalDecision] = None
        self._future: Optional[asyncio.Future] = None

    @property
    def is_open(self) -> bool:
        return self._future is not None and not self._future.done()

    async def request_approval(self, timeout: float) -> ApprovalDecision:
        """
        Open the gate and wait up to ``timeout`` seconds for a decision.

        Returns:
            The settled decision: approved, rejected, or timed-out

        Raises:
            GateClosedError: If this gate has already been opened
        """
        if self._future is not None:
            raise GateClosedError("Approval has already been requested for this run")

        self.decision = ApprovalDecision(requested_at=self.clock.now())
        self._future = asyncio.get_running_loop().create_future()
        logger.info(f"⏸️ Waiting up to {timeout:g}s for promotion approval")

        try:
            await asyncio.wait_for(asyncio.shield(self._future), timeout=timeout)
        except asyncio.TimeoutError:
            if not self._future.done():
                self.decision.settle(ApprovalOutcome.TIMED_OUT, decided_at=self.clock.now())
                self._future.set_result(None)
                logger.warning("⌛ Promotion approval timed out")

        logger.info(
            f"🗳️ Promotion decision: {self.decision.decision.value}"
            + (f" by {self.decision.responder}" if self.decision.responder else "")
        )
        return self.decision

    def submit(self, approved: bool, responder: str, comment: Optional[str] = None) -> ApprovalDecision:
        """
        Record an approver's decision.

        Raises:
            GateClosedError: If the gate is not waiting for a decision
        """
        if not self.is_open:
            raise GateClosedError("Promotion gate is not waiting for a decision")

        outcome = ApprovalOutcome.APPROVED if approved else ApprovalOutcome.REJECTED
        self.decision.settle(outcome, decided_at=self.clock.now(), responder=responder, comment=comment)
        self._future.set_result(None)
        return self.decision
