"""Who may edit or delete a policy, and when.

Two rulebooks exist and exactly one is active per engine:

- ``review_chain``: the owning creator edits/deletes until the underwriter
  has approved; the manager edits while reviewing and may delete while
  reviewing or after approving.
- ``draft_only``: only the owning creator, only while the policy is a draft.
"""

from __future__ import annotations

from enum import Enum

from policyflow.core.errors import InvalidTransition, PermissionDenied
from .entities import Actor, Policy, PolicyStatus, Role


class EditRules(str, Enum):
    REVIEW_CHAIN = "review_chain"
    DRAFT_ONLY = "draft_only"


class Mutation(str, Enum):
    UPDATE = "update"
    DELETE = "delete"


Rulebook = dict[Mutation, dict[Role, frozenset[PolicyStatus]]]

_BEFORE_MANAGER = frozenset({PolicyStatus.DRAFT, PolicyStatus.PENDING_UNDERWRITER})

RULEBOOKS: dict[EditRules, Rulebook] = {
    EditRules.REVIEW_CHAIN: {
        Mutation.UPDATE: {
            Role.CREATOR: _BEFORE_MANAGER,
            Role.MANAGER: frozenset({PolicyStatus.PENDING_MANAGER}),
        },
        Mutation.DELETE: {
            Role.CREATOR: _BEFORE_MANAGER,
            Role.MANAGER: frozenset({PolicyStatus.PENDING_MANAGER, PolicyStatus.APPROVED}),
        },
    },
    EditRules.DRAFT_ONLY: {
        Mutation.UPDATE: {Role.CREATOR: frozenset({PolicyStatus.DRAFT})},
        Mutation.DELETE: {Role.CREATOR: frozenset({PolicyStatus.DRAFT})},
    },
}


def check_mutation(
    rules: EditRules,
    mutation: Mutation,
    policy: Policy,
    actor: Actor,
) -> PolicyStatus:
    """Raise unless ``actor`` may apply ``mutation`` to ``policy`` right now.

    Returns the status the check was made against, so the caller can make
    its write conditional on it.
    """
    allowed = RULEBOOKS[rules][mutation].get(actor.role)
    if allowed is None:
        raise PermissionDenied(
            f"Role '{actor.role.value}' cannot {mutation.value} policies"
        )

    if actor.role is Role.CREATOR and not policy.is_owned_by(actor):
        raise PermissionDenied("Access denied")

    if policy.status not in allowed:
        statuses = ", ".join(sorted(s.value for s in allowed))
        raise InvalidTransition(
            f"Policy in '{policy.status.value}' status cannot be {mutation.value}d "
            f"by a {actor.role.value} (allowed: {statuses})"
        )

    return policy.status


def can_view(policy: Policy, actor: Actor) -> bool:
    if actor.role is Role.CREATOR:
        return policy.is_owned_by(actor)
    return True
