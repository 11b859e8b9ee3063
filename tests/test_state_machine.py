from __future__ import annotations

import pytest

from policyflow.core.errors import InvalidTransition, PermissionDenied
from policyflow.domain.policies import PolicyStatus, Role, TERMINAL_STATUSES, TRANSITIONS, Trigger
from policyflow.domain.policies.state_machine import (
    REVIEW_STAGES,
    initial_status,
    is_terminal,
    next_status,
    review_stage_for,
)


def test_transition_table_is_the_fixed_chain() -> None:
    assert TRANSITIONS == {
        (PolicyStatus.DRAFT, Trigger.SUBMIT): PolicyStatus.PENDING_UNDERWRITER,
        (PolicyStatus.PENDING_UNDERWRITER, Trigger.APPROVE): PolicyStatus.PENDING_MANAGER,
        (PolicyStatus.PENDING_UNDERWRITER, Trigger.REJECT): PolicyStatus.REJECTED,
        (PolicyStatus.PENDING_MANAGER, Trigger.APPROVE): PolicyStatus.APPROVED,
        (PolicyStatus.PENDING_MANAGER, Trigger.REJECT): PolicyStatus.REJECTED,
    }


def test_terminal_statuses_have_no_outgoing_transitions() -> None:
    for (source, _trigger) in TRANSITIONS:
        assert source not in TERMINAL_STATUSES

    for status in TERMINAL_STATUSES:
        assert is_terminal(status)
        for trigger in Trigger:
            with pytest.raises(InvalidTransition):
                next_status(status, trigger)


@pytest.mark.parametrize("status", list(PolicyStatus))
@pytest.mark.parametrize("trigger", list(Trigger))
def test_next_status_never_leaves_the_table(status: PolicyStatus, trigger: Trigger) -> None:
    if (status, trigger) in TRANSITIONS:
        assert next_status(status, trigger) in PolicyStatus
    else:
        with pytest.raises(InvalidTransition):
            next_status(status, trigger)


def test_underwriter_approval_never_reaches_approved() -> None:
    # Arrange
    stage = review_stage_for(Role.UNDERWRITER)

    # Act
    result = next_status(stage, Trigger.APPROVE)

    # Assert
    assert result is PolicyStatus.PENDING_MANAGER


def test_review_stages_cover_only_reviewers() -> None:
    assert REVIEW_STAGES == {
        Role.UNDERWRITER: PolicyStatus.PENDING_UNDERWRITER,
        Role.MANAGER: PolicyStatus.PENDING_MANAGER,
    }
    with pytest.raises(PermissionDenied):
        review_stage_for(Role.CREATOR)


def test_initial_status_follows_fraud_verdict() -> None:
    assert initial_status(True) is PolicyStatus.PENDING_UNDERWRITER
    assert initial_status(False) is PolicyStatus.REJECTED


def test_initial_status_is_draft_in_manual_submission_mode() -> None:
    assert initial_status(True, manual_submission=True) is PolicyStatus.DRAFT
    assert initial_status(False, manual_submission=True) is PolicyStatus.DRAFT
