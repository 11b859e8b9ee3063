from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from policyflow.domain.policies.validation import PolicyAttributes


class FraudOracle(Protocol):
    def check(self, attributes: PolicyAttributes) -> bool:
        ...
