"""Walk one policy through the approval chain and print every step.

Runs fully in-process against the in-memory repository; no server or
database needed.
"""
from __future__ import annotations

import argparse
import json
import random

from policyflow.api.schemas import PolicyOut
from policyflow.core.errors import PolicyWorkflowError
from policyflow.domain.fraud import RandomFraudOracle
from policyflow.domain.policies import (
    Actor,
    EditRules,
    InMemoryPolicyRepository,
    PolicyApprovalEngine,
    Role,
)
from policyflow.observability.tracing import configure_logging

CREATOR = Actor(identity="creator1", display_name="John Creator", role=Role.CREATOR)
UNDERWRITER = Actor(identity="underwriter1", display_name="Jane Underwriter", role=Role.UNDERWRITER)
MANAGER = Actor(identity="manager1", display_name="Bob Manager", role=Role.MANAGER)


def _show(title: str, policy) -> None:
    print(f"\n=== {title} ===")
    print(json.dumps(PolicyOut.from_entity(policy).model_dump(mode="json", by_alias=True), indent=2))


def main() -> None:
    parser = argparse.ArgumentParser()
    parser.add_argument('--customer', default='Acme Corp')
    parser.add_argument('--premium', type=float, default=500.0)
    parser.add_argument('--product', default='auto')
    parser.add_argument('--fraud-pass-rate', type=float, default=0.8)
    parser.add_argument('--seed', type=int, default=None)
    parser.add_argument('--manager-decision', choices=['approve', 'reject'], default='approve')
    parser.add_argument('--edit-rules', choices=[r.value for r in EditRules], default=EditRules.REVIEW_CHAIN.value)
    parser.add_argument('--manual-submission', action='store_true')
    parser.add_argument('--verbose', action='store_true', help='Print workflow log events')
    args = parser.parse_args()

    if args.verbose:
        configure_logging("INFO")

    engine = PolicyApprovalEngine(
        repository=InMemoryPolicyRepository(),
        fraud_oracle=RandomFraudOracle(args.fraud_pass_rate, rng=random.Random(args.seed)),
        edit_rules=EditRules(args.edit_rules),
        manual_submission=args.manual_submission,
    )

    try:
        policy = engine.create(
            {
                "customerName": args.customer,
                "premiumAmount": args.premium,
                "productType": args.product,
            },
            CREATOR,
        )
        _show("CREATED", policy)

        if args.manual_submission:
            policy = engine.submit(policy.id, CREATOR)
            _show("SUBMITTED", policy)

        policy = engine.decide(policy.id, UNDERWRITER, "approve", "Risk profile acceptable")
        _show("UNDERWRITER DECISION", policy)

        policy = engine.decide(policy.id, MANAGER, args.manager_decision, "Final review")
        _show("MANAGER DECISION", policy)
    except PolicyWorkflowError as exc:
        print(f"\n=== STOPPED: {exc.kind} ===")
        print(exc.reason)
        raise SystemExit(1)


if __name__ == '__main__':
    main()
