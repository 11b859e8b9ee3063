from datetime import datetime
from typing import Any, Optional, Protocol

from .entities import ApprovalLogEntry, Policy, PolicyStatus


class PolicyRepositoryProtocol(Protocol):
    """Storage for policies.

    Every write that depends on a status is a compare-and-swap: it applies
    only if the stored status still equals ``expected`` and returns ``None``
    (or ``False``) otherwise, leaving the record untouched.
    """

    def insert(self, policy: Policy) -> Policy:
        """Store a new policy"""
        ...

    def get(self, policy_id: str) -> Optional[Policy]:
        """Get a policy by id"""
        ...

    def list(self, *, created_by: Optional[str] = None) -> list[Policy]:
        """Policies, most recently created first"""
        ...

    def transition(
        self,
        policy_id: str,
        *,
        expected: PolicyStatus,
        target: PolicyStatus,
        now: datetime,
        log_entry: Optional[ApprovalLogEntry] = None,
    ) -> Optional[Policy]:
        """Move to ``target`` (and append ``log_entry``) if still in ``expected``"""
        ...

    def update_attributes(
        self,
        policy_id: str,
        *,
        expected: PolicyStatus,
        changes: dict[str, Any],
        now: datetime,
    ) -> Optional[Policy]:
        """Apply attribute changes if still in ``expected``"""
        ...

    def delete(self, policy_id: str, *, expected: PolicyStatus) -> bool:
        """Remove the policy and its log if still in ``expected``"""
        ...
