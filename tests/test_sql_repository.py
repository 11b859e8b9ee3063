from __future__ import annotations

from datetime import datetime, timezone

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from policyflow.core.errors import InvalidTransition, PersistenceError, PolicyWorkflowError
from policyflow.db.connection import init_db
from policyflow.domain.policies import ApprovalAction, PolicyStatus, ProductType
from policyflow.domain.policies.sql_repository import PolicyRepository

from tests.fixtures.actors import ACME, CREATOR, MANAGER, OTHER_CREATOR, UNDERWRITER
from tests.fixtures.engine_factory import build_engine


def _sqlite_engine():
    return create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )


@pytest.fixture
def db():
    bind = _sqlite_engine()
    init_db(bind=bind)
    session = sessionmaker(autocommit=False, autoflush=False, bind=bind)()
    try:
        yield session
    finally:
        session.close()
        bind.dispose()


def test_full_chain_round_trips_through_sql(db) -> None:
    # Arrange
    repo = PolicyRepository(db)
    engine, _, _ = build_engine(repository=repo)

    # Act
    policy = engine.create(ACME, CREATOR)
    engine.decide(policy.id, UNDERWRITER, "approve", "ok")
    engine.decide(policy.id, MANAGER, "reject", "too risky")

    # Assert
    stored = repo.get(policy.id)
    assert stored.status is PolicyStatus.REJECTED
    assert stored.product_type is ProductType.AUTO
    assert stored.fraud_check.passed is True
    assert stored.fraud_check.checked_at.tzinfo is not None
    assert [(e.action, e.comment) for e in stored.approval_logs] == [
        (ApprovalAction.APPROVED, "ok"),
        (ApprovalAction.REJECTED, "too risky"),
    ]
    assert stored.approval_logs[0].approver_name == UNDERWRITER.display_name


def test_created_policy_reads_back_equal(db) -> None:
    repo = PolicyRepository(db)
    engine, _, _ = build_engine(repository=repo)

    policy = engine.create(ACME, CREATOR)

    assert repo.get(policy.id) == policy


def test_transition_is_conditional_on_expected_status(db) -> None:
    repo = PolicyRepository(db)
    engine, _, _ = build_engine(repository=repo)
    policy = engine.create(ACME, CREATOR)
    now = datetime(2030, 1, 1, tzinfo=timezone.utc)

    result = repo.transition(
        policy.id,
        expected=PolicyStatus.PENDING_MANAGER,
        target=PolicyStatus.APPROVED,
        now=now,
    )

    assert result is None
    assert repo.get(policy.id) == policy


def test_stale_decision_writes_no_log_entry(db) -> None:
    # Arrange: the policy moved on after the second reviewer read it.
    repo = PolicyRepository(db)
    engine, _, _ = build_engine(repository=repo)
    policy = engine.create(ACME, CREATOR)
    stale = repo.get(policy.id)
    engine.decide(policy.id, UNDERWRITER, "reject", "first")

    original_get = repo.get
    repo.get = lambda policy_id: stale

    # Act / Assert
    with pytest.raises(InvalidTransition):
        engine.decide(policy.id, UNDERWRITER, "approve", "second")

    repo.get = original_get
    stored = repo.get(policy.id)
    assert stored.status is PolicyStatus.REJECTED
    assert [e.comment for e in stored.approval_logs] == ["first"]


def test_update_and_delete(db) -> None:
    repo = PolicyRepository(db)
    engine, _, _ = build_engine(repository=repo)
    policy = engine.create(ACME, CREATOR)

    updated = engine.update(policy.id, CREATOR, {"customerName": "Acme Ltd", "productType": "business"})
    assert updated.customer_name == "Acme Ltd"
    assert updated.product_type is ProductType.BUSINESS

    engine.delete(policy.id, CREATOR)
    assert repo.get(policy.id) is None


def test_delete_removes_approval_log(db) -> None:
    repo = PolicyRepository(db)
    engine, _, _ = build_engine(repository=repo)
    policy = engine.create(ACME, CREATOR)
    engine.decide(policy.id, UNDERWRITER, "approve")
    engine.decide(policy.id, MANAGER, "approve")

    engine.delete(policy.id, MANAGER)

    assert repo.get(policy.id) is None
    from policyflow.domain.policies.models import ApprovalLogRecord
    assert db.query(ApprovalLogRecord).count() == 0


def test_list_filters_and_orders(db) -> None:
    repo = PolicyRepository(db)
    engine, _, _ = build_engine(repository=repo)
    first = engine.create(ACME, CREATOR)
    second = engine.create(ACME, OTHER_CREATOR)
    third = engine.create(ACME, CREATOR)

    assert [p.id for p in repo.list(created_by=CREATOR.identity)] == [third.id, first.id]
    assert [p.id for p in repo.list()] == [third.id, second.id, first.id]


def test_storage_failures_surface_as_persistence_errors() -> None:
    # No tables created: every statement fails.
    bind = _sqlite_engine()
    session = sessionmaker(bind=bind)()
    repo = PolicyRepository(session)
    engine, _, _ = build_engine(repository=repo)

    with pytest.raises(PersistenceError) as exc:
        engine.create(ACME, CREATOR)

    assert not isinstance(exc.value, PolicyWorkflowError)

    with pytest.raises(PersistenceError):
        repo.list()

    session.close()
    bind.dispose()
