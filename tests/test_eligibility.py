from __future__ import annotations

from datetime import datetime, timezone

import pytest

from policyflow.core.errors import InvalidTransition, PermissionDenied
from policyflow.domain.policies import (
    EditRules,
    FraudCheck,
    Mutation,
    Policy,
    PolicyStatus,
    ProductType,
    can_view,
    check_mutation,
)

from tests.fixtures.actors import CREATOR, MANAGER, OTHER_CREATOR, UNDERWRITER

NOW = datetime(2024, 1, 1, tzinfo=timezone.utc)


def make_policy(status: PolicyStatus, owner: str = CREATOR.identity) -> Policy:
    return Policy(
        id="POL-1",
        customer_name="Acme",
        premium_amount=500,
        product_type=ProductType.AUTO,
        status=status,
        fraud_check=FraudCheck(passed=True, checked_at=NOW),
        created_by=owner,
        creator_name="John Creator",
        created_at=NOW,
        updated_at=NOW,
    )


def allowed(rules, mutation, status, actor) -> bool:
    try:
        check_mutation(rules, mutation, make_policy(status), actor)
    except InvalidTransition:
        return False
    return True


@pytest.mark.parametrize("mutation", list(Mutation))
def test_review_chain_creator_window(mutation: Mutation) -> None:
    permitted = {
        s for s in PolicyStatus
        if allowed(EditRules.REVIEW_CHAIN, mutation, s, CREATOR)
    }
    assert permitted == {PolicyStatus.DRAFT, PolicyStatus.PENDING_UNDERWRITER}


def test_review_chain_manager_deletes_in_wider_window_than_edits() -> None:
    updatable = {
        s for s in PolicyStatus
        if allowed(EditRules.REVIEW_CHAIN, Mutation.UPDATE, s, MANAGER)
    }
    deletable = {
        s for s in PolicyStatus
        if allowed(EditRules.REVIEW_CHAIN, Mutation.DELETE, s, MANAGER)
    }

    assert updatable == {PolicyStatus.PENDING_MANAGER}
    assert deletable == {PolicyStatus.PENDING_MANAGER, PolicyStatus.APPROVED}


@pytest.mark.parametrize("mutation", list(Mutation))
def test_draft_only_restricts_to_owner_in_draft(mutation: Mutation) -> None:
    permitted = {
        s for s in PolicyStatus
        if allowed(EditRules.DRAFT_ONLY, mutation, s, CREATOR)
    }
    assert permitted == {PolicyStatus.DRAFT}

    with pytest.raises(PermissionDenied):
        check_mutation(EditRules.DRAFT_ONLY, mutation, make_policy(PolicyStatus.PENDING_MANAGER), MANAGER)


@pytest.mark.parametrize("rules", list(EditRules))
@pytest.mark.parametrize("mutation", list(Mutation))
@pytest.mark.parametrize("status", list(PolicyStatus))
def test_underwriters_never_edit_or_delete(rules, mutation, status) -> None:
    with pytest.raises(PermissionDenied):
        check_mutation(rules, mutation, make_policy(status), UNDERWRITER)


@pytest.mark.parametrize("rules", list(EditRules))
@pytest.mark.parametrize("mutation", list(Mutation))
@pytest.mark.parametrize("status", list(PolicyStatus))
def test_non_owner_creator_is_denied_before_status_is_considered(rules, mutation, status) -> None:
    with pytest.raises(PermissionDenied):
        check_mutation(rules, mutation, make_policy(status), OTHER_CREATOR)


def test_check_mutation_returns_observed_status() -> None:
    policy = make_policy(PolicyStatus.PENDING_MANAGER)
    assert check_mutation(EditRules.REVIEW_CHAIN, Mutation.UPDATE, policy, MANAGER) is PolicyStatus.PENDING_MANAGER


def test_can_view() -> None:
    policy = make_policy(PolicyStatus.PENDING_UNDERWRITER)

    assert can_view(policy, CREATOR)
    assert not can_view(policy, OTHER_CREATOR)
    assert can_view(policy, UNDERWRITER)
    assert can_view(policy, MANAGER)
