from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel

from app.domain.errors import ApprovalRejected, ApprovalTimeout


class ApprovalOutcome(str, Enum):
    APPROVED = "approved"
    REJECTED = "rejected"
    TIMED_OUT = "timed-out"


class ApprovalDecision(BaseModel):
    requested_at: datetime
    decided_at: Optional[datetime] = None
    responder: Optional[str] = None
    decision: Optional[ApprovalOutcome] = None
    comment: Optional[str] = None

    @property
    def approved(self) -> bool:
        return self.decision == ApprovalOutcome.APPROVED

    def settle(
        self,
        decision: ApprovalOutcome,
        decided_at: datetime,
        responder: Optional[str] = None,
        comment: Optional[str] = None,
    ) -> None:
        if self.decision is not None:
            raise RuntimeError(f"Approval already settled as {self.decision.value}")
        self.decision = decision
        self.responder = responder
        self.comment = comment
        self.decided_at = decided_at

    def raise_for_decision(self) -> None:
        """Raise unless production promotion was explicitly approved."""
        if self.decision == ApprovalOutcome.APPROVED:
            return
        if self.decision == ApprovalOutcome.TIMED_OUT:
            raise ApprovalTimeout("No approval decision before the gate timed out")
        raise ApprovalRejected(f"Promotion rejected by {self.responder or 'unknown approver'}")
