"""The fixed approval chain.

    (create) -> pending_underwriter | rejected      [draft in manual mode]
    draft --submit--> pending_underwriter
    pending_underwriter --approve--> pending_manager
    pending_underwriter --reject--> rejected
    pending_manager --approve--> approved
    pending_manager --reject--> rejected

The chain is closed on purpose. Anything not listed in ``TRANSITIONS`` is
an ``InvalidTransition``.
"""

from __future__ import annotations

from enum import Enum

from policyflow.core.errors import InvalidTransition, PermissionDenied
from .entities import ApprovalAction, Decision, PolicyStatus, Role


class Trigger(str, Enum):
    SUBMIT = "submit"
    APPROVE = "approve"
    REJECT = "reject"


TERMINAL_STATUSES = frozenset({PolicyStatus.APPROVED, PolicyStatus.REJECTED})

TRANSITIONS: dict[tuple[PolicyStatus, Trigger], PolicyStatus] = {
    (PolicyStatus.DRAFT, Trigger.SUBMIT): PolicyStatus.PENDING_UNDERWRITER,
    (PolicyStatus.PENDING_UNDERWRITER, Trigger.APPROVE): PolicyStatus.PENDING_MANAGER,
    (PolicyStatus.PENDING_UNDERWRITER, Trigger.REJECT): PolicyStatus.REJECTED,
    (PolicyStatus.PENDING_MANAGER, Trigger.APPROVE): PolicyStatus.APPROVED,
    (PolicyStatus.PENDING_MANAGER, Trigger.REJECT): PolicyStatus.REJECTED,
}

# The one status each reviewer role is allowed to act on.
REVIEW_STAGES: dict[Role, PolicyStatus] = {
    Role.UNDERWRITER: PolicyStatus.PENDING_UNDERWRITER,
    Role.MANAGER: PolicyStatus.PENDING_MANAGER,
}

_DECISION_TRIGGERS: dict[Decision, Trigger] = {
    Decision.APPROVE: Trigger.APPROVE,
    Decision.REJECT: Trigger.REJECT,
}

_LOG_ACTIONS: dict[Decision, ApprovalAction] = {
    Decision.APPROVE: ApprovalAction.APPROVED,
    Decision.REJECT: ApprovalAction.REJECTED,
}


def initial_status(fraud_passed: bool, *, manual_submission: bool = False) -> PolicyStatus:
    """Status a policy is born with once the fraud oracle has answered."""
    if manual_submission:
        return PolicyStatus.DRAFT
    return PolicyStatus.PENDING_UNDERWRITER if fraud_passed else PolicyStatus.REJECTED


def is_terminal(status: PolicyStatus) -> bool:
    return status in TERMINAL_STATUSES


def next_status(current: PolicyStatus, trigger: Trigger) -> PolicyStatus:
    try:
        return TRANSITIONS[(current, trigger)]
    except KeyError:
        raise InvalidTransition(
            f"Cannot {trigger.value} a policy in '{current.value}' status"
        ) from None


def review_stage_for(role: Role) -> PolicyStatus:
    """Status a reviewer may decide on; non-reviewers are refused."""
    stage = REVIEW_STAGES.get(role)
    if stage is None:
        raise PermissionDenied(f"Role '{role.value}' cannot approve or reject policies")
    return stage


def trigger_for(decision: Decision) -> Trigger:
    return _DECISION_TRIGGERS[decision]


def log_action_for(decision: Decision) -> ApprovalAction:
    return _LOG_ACTIONS[decision]
