from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from policyflow.domain.policies.validation import PolicyAttributes


class FakeFraudOracle:
    def __init__(self, verdict: bool = True):
        self._verdict = verdict
        self.calls: list[PolicyAttributes] = []

    def check(self, attributes: PolicyAttributes) -> bool:
        self.calls.append(attributes)
        return self._verdict
