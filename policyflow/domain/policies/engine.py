"""Policy approval engine.

This is the only place policy state changes. It is responsible for:
- validating new policies and patches
- consulting the fraud oracle exactly once, at creation
- enforcing the role-gated state machine
- appending approval-log entries together with the decision they record
- gating edits and deletes on role, ownership and status

Every operation takes the caller explicitly as an ``Actor``. Status-guarded
writes go through the repository's compare-and-swap methods; when a write
loses a race the caller gets ``InvalidTransition`` and nothing is written.
"""

from __future__ import annotations

import logging
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Mapping

from policyflow.core.errors import (
    FraudCheckFailed,
    FraudOracleError,
    InvalidTransition,
    NotFound,
    PermissionDenied,
)
from policyflow.domain.fraud.fraud_oracle import FraudOracle
from policyflow.observability.tracing import Span, log_event, new_trace_id
from .eligibility import EditRules, Mutation, can_view, check_mutation
from .entities import (
    Actor,
    ApprovalLogEntry,
    Decision,
    FraudCheck,
    Policy,
    PolicyStatus,
    Role,
)
from .repository import PolicyRepositoryProtocol
from .state_machine import (
    Trigger,
    initial_status,
    log_action_for,
    next_status,
    review_stage_for,
    trigger_for,
)
from .validation import parse_attributes, parse_decision, parse_patch


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def generate_policy_id() -> str:
    return f"POL-{int(time.time() * 1000)}-{uuid.uuid4().hex[:9].upper()}"


class PolicyApprovalEngine:
    """Owns the lifecycle of policy records."""

    def __init__(
        self,
        *,
        repository: PolicyRepositoryProtocol,
        fraud_oracle: FraudOracle,
        edit_rules: EditRules = EditRules.REVIEW_CHAIN,
        manual_submission: bool = False,
        clock: Callable[[], datetime] = utcnow,
        id_factory: Callable[[], str] = generate_policy_id,
    ) -> None:
        self._repo = repository
        self._fraud_oracle = fraud_oracle
        self._edit_rules = edit_rules
        self._manual_submission = manual_submission
        self._clock = clock
        self._id_factory = id_factory

    @property
    def edit_rules(self) -> EditRules:
        return self._edit_rules

    # -------------------------
    # Queries
    # -------------------------

    def get(self, policy_id: str, actor: Actor) -> Policy:
        policy = self._load(policy_id)
        if not can_view(policy, actor):
            raise PermissionDenied("Access denied")
        return policy

    def list(self, actor: Actor) -> list[Policy]:
        """Policies visible to ``actor``, most recently created first."""
        if actor.role is Role.CREATOR:
            return self._repo.list(created_by=actor.identity)
        return self._repo.list()

    # -------------------------
    # Lifecycle
    # -------------------------

    def create(self, attrs: Mapping[str, Any], actor: Actor) -> Policy:
        """Validate, run the fraud check once and store a new policy.

        A failed fraud check is a terminal rejection with no approval-log
        entry: nobody reviewed it.
        """
        if actor.role is not Role.CREATOR:
            raise PermissionDenied("Only creators can create policies")

        attributes = parse_attributes(attrs)
        trace_id = new_trace_id()
        passed = self._run_fraud_check(attributes, trace_id=trace_id)

        now = self._clock()
        policy = Policy(
            id=self._id_factory(),
            customer_name=attributes.customer_name,
            premium_amount=attributes.premium_amount,
            product_type=attributes.product_type,
            status=initial_status(passed, manual_submission=self._manual_submission),
            fraud_check=FraudCheck(passed=passed, checked_at=now),
            created_by=actor.identity,
            creator_name=actor.display_name,
            created_at=now,
            updated_at=now,
        )
        self._repo.insert(policy)

        log_event(
            'policy.created',
            trace_id=trace_id,
            policy_id=policy.id,
            created_by=actor.identity,
            product_type=policy.product_type.value,
            premium_amount=policy.premium_amount,
            fraud_passed=passed,
            status=policy.status.value,
        )
        return policy

    def submit(self, policy_id: str, actor: Actor) -> Policy:
        policy = self._load(policy_id)

        if not policy.is_owned_by(actor):
            raise PermissionDenied("Access denied")
        if policy.status is not PolicyStatus.DRAFT:
            raise InvalidTransition("Policy has already been submitted")
        if not policy.fraud_check.passed:
            raise FraudCheckFailed("Policy failed fraud check and cannot be submitted")

        target = next_status(policy.status, Trigger.SUBMIT)
        trace_id = new_trace_id()
        updated = self._repo.transition(
            policy_id,
            expected=policy.status,
            target=target,
            now=self._clock(),
        )
        if updated is None:
            self._conflict(trace_id, policy, actor, "submit")

        log_event(
            'policy.submitted',
            trace_id=trace_id,
            policy_id=policy_id,
            by=actor.identity,
            status=updated.status.value,
        )
        return updated

    def decide(
        self,
        policy_id: str,
        actor: Actor,
        action: Decision | str,
        comment: str = "",
    ) -> Policy:
        """Record a reviewer's approve/reject decision and advance the chain.

        The log entry and the status change are written together or not at
        all.
        """
        stage = review_stage_for(actor.role)
        decision = parse_decision(action, comment)
        policy = self._load(policy_id)

        if policy.status is not stage:
            raise InvalidTransition(f"Policy is not in {stage.value} status")

        target = next_status(policy.status, trigger_for(decision.action))
        now = self._clock()
        entry = ApprovalLogEntry(
            approver_id=actor.identity,
            approver_name=actor.display_name,
            action=log_action_for(decision.action),
            comment=decision.comment,
            timestamp=now,
        )

        trace_id = new_trace_id()
        updated = self._repo.transition(
            policy_id,
            expected=stage,
            target=target,
            now=now,
            log_entry=entry,
        )
        if updated is None:
            self._conflict(trace_id, policy, actor, decision.action.value)

        log_event(
            'policy.decided',
            trace_id=trace_id,
            policy_id=policy_id,
            by=actor.identity,
            role=actor.role.value,
            action=entry.action.value,
            comment=entry.comment or None,
            from_status=stage.value,
            to_status=updated.status.value,
        )
        return updated

    # -------------------------
    # Edits
    # -------------------------

    def update(self, policy_id: str, actor: Actor, patch: Mapping[str, Any]) -> Policy:
        changes = parse_patch(patch).changes()
        policy = self._load(policy_id)
        observed = check_mutation(self._edit_rules, Mutation.UPDATE, policy, actor)

        trace_id = new_trace_id()
        updated = self._repo.update_attributes(
            policy_id,
            expected=observed,
            changes=changes,
            now=self._clock(),
        )
        if updated is None:
            self._conflict(trace_id, policy, actor, "update")

        log_event(
            'policy.updated',
            trace_id=trace_id,
            policy_id=policy_id,
            by=actor.identity,
            role=actor.role.value,
            fields=sorted(changes),
        )
        return updated

    def delete(self, policy_id: str, actor: Actor) -> None:
        policy = self._load(policy_id)
        observed = check_mutation(self._edit_rules, Mutation.DELETE, policy, actor)

        trace_id = new_trace_id()
        if not self._repo.delete(policy_id, expected=observed):
            self._conflict(trace_id, policy, actor, "delete")

        log_event(
            'policy.deleted',
            trace_id=trace_id,
            policy_id=policy_id,
            by=actor.identity,
            role=actor.role.value,
            status=observed.value,
        )

    # -------------------------
    # Internals
    # -------------------------

    def _load(self, policy_id: str) -> Policy:
        policy = self._repo.get(policy_id)
        if policy is None:
            raise NotFound(policy_id)
        return policy

    def _run_fraud_check(self, attributes, *, trace_id: str) -> bool:
        # Called exactly once per policy; never retried.
        span = Span(name='fraud.check', trace_id=trace_id)
        try:
            verdict = self._fraud_oracle.check(attributes)
            span.attributes['verdict'] = verdict if isinstance(verdict, bool) else repr(verdict)
        except Exception as exc:
            span.attributes['error'] = type(exc).__name__
            raise FraudOracleError(f"Fraud check could not be completed: {exc}") from exc
        finally:
            span.end()
            log_event('span.end', trace_id=trace_id, span=span)

        if not isinstance(verdict, bool):
            raise FraudOracleError(
                f"Fraud oracle returned {type(verdict).__name__}, expected bool"
            )
        return verdict

    def _conflict(self, trace_id: str, policy: Policy, actor: Actor, operation: str):
        """The compare-and-swap lost: someone changed or removed the policy first."""
        log_event(
            'policy.transition_conflict',
            trace_id=trace_id,
            level=logging.WARNING,
            policy_id=policy.id,
            by=actor.identity,
            operation=operation,
            expected_status=policy.status.value,
        )
        raise InvalidTransition(
            f"Policy '{policy.id}' changed while the {operation} was in progress; "
            f"it is no longer in {policy.status.value} status"
        )
