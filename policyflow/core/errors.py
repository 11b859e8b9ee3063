# ---------------------------------
# TYPED EXCEPTIONS
# ---------------------------------


class PolicyWorkflowError(Exception):
    """Base class for business errors raised by the approval engine.

    These are always terminal for the engine: the caller decides whether
    to retry.
    """

    kind = "workflow_error"

    def __init__(self, reason: str):
        self.reason = reason
        super().__init__(reason)


class ValidationError(PolicyWorkflowError):
    """Malformed, unknown or out-of-range input."""

    kind = "validation_error"


class PermissionDenied(PolicyWorkflowError):
    """Role or ownership mismatch."""

    kind = "permission_denied"


class InvalidTransition(PolicyWorkflowError):
    """Operation is not legal from the policy's current status."""

    kind = "invalid_transition"


class FraudCheckFailed(PolicyWorkflowError):
    kind = "fraud_check_failed"


class NotFound(PolicyWorkflowError):
    kind = "not_found"

    def __init__(self, policy_id: str):
        self.policy_id = policy_id
        super().__init__(f"Policy '{policy_id}' not found")


class EngineFault(RuntimeError):
    """Internal fault, never conflated with the business errors above."""

    kind = "internal_error"


class PersistenceError(EngineFault):
    pass


class FraudOracleError(EngineFault):
    """Raised when the fraud oracle errors or returns something other than a verdict."""
    pass
