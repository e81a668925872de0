"""
Error kinds for the promotion workflow.

Every failure the controller can end a run with is a ``PromotionError``
subclass carrying a stable ``kind`` string, which is what lands on the
``PipelineRun`` and in notification payloads.
"""

from typing import Optional


class PromotionError(Exception):
    kind = "promotion_error"

    def __init__(self, message: str, environment: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.environment = environment


class DeploymentFailure(PromotionError):
    """The remote configuration-management run exited non-zero."""

    kind = "deployment_failure"

    def __init__(self, environment: str, exit_code: int):
        super().__init__(
            f"Deployment to {environment} failed with exit code {exit_code}",
            environment=environment,
        )
        self.exit_code = exit_code


class VerificationFailure(PromotionError):
    """The target never turned healthy within the verification budget."""

    kind = "verification_failure"


class TransportError(PromotionError):
    """A health probe request itself failed. Consumes a retry attempt."""

    kind = "transport_error"


class ApprovalRejected(PromotionError):
    kind = "approval_rejected"


class ApprovalTimeout(PromotionError):
    kind = "approval_timeout"


class RunAborted(PromotionError):
    kind = "aborted"


class RunAlreadyActive(PromotionError):
    kind = "run_already_active"


class GateClosedError(PromotionError):
    """A decision was submitted to a gate that is not waiting for one."""

    kind = "gate_closed"


class ConfigurationError(PromotionError):
    """An environment is missing settings a run needs."""

    kind = "configuration_error"
