import dataclasses
import threading
from datetime import datetime
from typing import Any, Optional

from .entities import ApprovalLogEntry, Policy, PolicyStatus

PATCHABLE_ATTRIBUTES = frozenset({"customer_name", "premium_amount", "product_type"})


class InMemoryPolicyRepository:
    """Process-local store.

    Policies are immutable snapshots, so readers never see a half-applied
    write. The lock is held only for the duration of each compare-and-swap.
    """

    def __init__(self) -> None:
        self._policies: dict[str, Policy] = {}
        self._lock = threading.Lock()

    def insert(self, policy: Policy) -> Policy:
        with self._lock:
            if policy.id in self._policies:
                raise KeyError(f"Policy '{policy.id}' already exists")
            self._policies[policy.id] = policy
        return policy

    def get(self, policy_id: str) -> Optional[Policy]:
        return self._policies.get(policy_id)

    def list(self, *, created_by: Optional[str] = None) -> list[Policy]:
        policies = [
            p for p in list(self._policies.values())
            if created_by is None or p.created_by == created_by
        ]
        return sorted(policies, key=lambda p: (p.created_at, p.id), reverse=True)

    def transition(
        self,
        policy_id: str,
        *,
        expected: PolicyStatus,
        target: PolicyStatus,
        now: datetime,
        log_entry: Optional[ApprovalLogEntry] = None,
    ) -> Optional[Policy]:
        with self._lock:
            current = self._policies.get(policy_id)
            if current is None or current.status is not expected:
                return None
            logs = current.approval_logs
            if log_entry is not None:
                logs = logs + (log_entry,)
            updated = dataclasses.replace(
                current, status=target, approval_logs=logs, updated_at=now
            )
            self._policies[policy_id] = updated
            return updated

    def update_attributes(
        self,
        policy_id: str,
        *,
        expected: PolicyStatus,
        changes: dict[str, Any],
        now: datetime,
    ) -> Optional[Policy]:
        unknown = set(changes) - PATCHABLE_ATTRIBUTES
        if unknown:
            raise KeyError(f"Not patchable: {', '.join(sorted(unknown))}")
        with self._lock:
            current = self._policies.get(policy_id)
            if current is None or current.status is not expected:
                return None
            updated = dataclasses.replace(current, updated_at=now, **changes)
            self._policies[policy_id] = updated
            return updated

    def delete(self, policy_id: str, *, expected: PolicyStatus) -> bool:
        with self._lock:
            current = self._policies.get(policy_id)
            if current is None or current.status is not expected:
                return False
            del self._policies[policy_id]
            return True
