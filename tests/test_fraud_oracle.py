from __future__ import annotations

import random

import pytest

from policyflow.domain.fraud import FakeFraudOracle, RandomFraudOracle
from policyflow.domain.policies import parse_attributes

from tests.fixtures.actors import ACME

ATTRIBUTES = parse_attributes(ACME)


def test_random_oracle_extremes() -> None:
    always = RandomFraudOracle(pass_rate=1.0)
    never = RandomFraudOracle(pass_rate=0.0)

    assert all(always.check(ATTRIBUTES) for _ in range(50))
    assert not any(never.check(ATTRIBUTES) for _ in range(50))


def test_random_oracle_is_reproducible_with_seeded_rng() -> None:
    first = RandomFraudOracle(0.8, rng=random.Random(7))
    second = RandomFraudOracle(0.8, rng=random.Random(7))

    assert [first.check(ATTRIBUTES) for _ in range(20)] == [second.check(ATTRIBUTES) for _ in range(20)]


def test_random_oracle_pass_rate_roughly_holds() -> None:
    oracle = RandomFraudOracle(0.8, rng=random.Random(1234))

    passed = sum(oracle.check(ATTRIBUTES) for _ in range(2000))

    assert 1500 < passed < 1700


@pytest.mark.parametrize("rate", [-0.1, 1.5])
def test_random_oracle_rejects_bad_rate(rate: float) -> None:
    with pytest.raises(ValueError):
        RandomFraudOracle(pass_rate=rate)


def test_fake_oracle_records_calls() -> None:
    oracle = FakeFraudOracle(verdict=False)

    assert oracle.check(ATTRIBUTES) is False
    assert oracle.calls == [ATTRIBUTES]
