from __future__ import annotations

import random
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from policyflow.domain.policies.validation import PolicyAttributes


class RandomFraudOracle:
    """
    Stand-in for a real fraud service: passes with a fixed probability.

    The attributes are ignored; only the verdict matters to the workflow.
    """

    def __init__(self, pass_rate: float = 0.8, rng: Optional[random.Random] = None) -> None:
        if not 0.0 <= pass_rate <= 1.0:
            raise ValueError("pass_rate must be between 0 and 1")
        self._pass_rate = pass_rate
        self._rng = rng or random.Random()

    def check(self, attributes: PolicyAttributes) -> bool:
        return self._rng.random() < self._pass_rate
