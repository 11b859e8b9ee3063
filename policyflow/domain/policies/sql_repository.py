# ============================================================
# DB access layer
# ============================================================
from datetime import datetime, timezone
from typing import Any, Optional

from sqlalchemy import delete, select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from policyflow.core.errors import PersistenceError
from .entities import (
    ApprovalAction,
    ApprovalLogEntry,
    FraudCheck,
    Policy,
    PolicyStatus,
    ProductType,
)
from .in_memory_repository import PATCHABLE_ATTRIBUTES
from .models import ApprovalLogRecord, PolicyRecord


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    # SQLite hands back naive datetimes even for timezone-aware columns.
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def _to_entity(record: PolicyRecord) -> Policy:
    return Policy(
        id=record.id,
        customer_name=record.customer_name,
        premium_amount=record.premium_amount,
        product_type=ProductType(record.product_type),
        status=PolicyStatus(record.status),
        fraud_check=FraudCheck(
            passed=record.fraud_passed,
            checked_at=_as_utc(record.fraud_checked_at),
        ),
        created_by=record.created_by,
        creator_name=record.creator_name,
        created_at=_as_utc(record.created_at),
        updated_at=_as_utc(record.updated_at),
        approval_logs=tuple(
            ApprovalLogEntry(
                approver_id=log.approver_id,
                approver_name=log.approver_name,
                action=ApprovalAction(log.action),
                comment=log.comment,
                timestamp=_as_utc(log.timestamp),
            )
            for log in record.approval_logs
        ),
    )


def _column_values(changes: dict[str, Any]) -> dict[str, Any]:
    values = dict(changes)
    if "product_type" in values:
        values["product_type"] = ProductType(values["product_type"]).value
    return values


class PolicyRepository:
    """SQLAlchemy-backed policy store.

    Status-guarded writes are a single ``UPDATE ... WHERE status = :expected``
    whose row count decides who won; the approval-log insert rides in the
    same transaction.
    """

    def __init__(self, db: Session):
        self.db = db

    def insert(self, policy: Policy) -> Policy:
        record = PolicyRecord(
            id=policy.id,
            customer_name=policy.customer_name,
            premium_amount=policy.premium_amount,
            product_type=policy.product_type.value,
            status=policy.status.value,
            fraud_passed=policy.fraud_check.passed,
            fraud_checked_at=policy.fraud_check.checked_at,
            created_by=policy.created_by,
            creator_name=policy.creator_name,
            created_at=policy.created_at,
            updated_at=policy.updated_at,
        )
        try:
            self.db.add(record)
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise PersistenceError(f"Could not insert policy '{policy.id}'") from exc
        return policy

    def get(self, policy_id: str) -> Optional[Policy]:
        try:
            record = self.db.execute(
                select(PolicyRecord).where(PolicyRecord.id == policy_id)
            ).scalar_one_or_none()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise PersistenceError(f"Could not load policy '{policy_id}'") from exc
        return _to_entity(record) if record is not None else None

    def list(self, *, created_by: Optional[str] = None) -> list[Policy]:
        query = select(PolicyRecord)
        if created_by is not None:
            query = query.where(PolicyRecord.created_by == created_by)
        query = query.order_by(PolicyRecord.created_at.desc(), PolicyRecord.id.desc())
        try:
            records = self.db.execute(query).scalars().all()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise PersistenceError("Could not list policies") from exc
        return [_to_entity(r) for r in records]

    def transition(
        self,
        policy_id: str,
        *,
        expected: PolicyStatus,
        target: PolicyStatus,
        now: datetime,
        log_entry: Optional[ApprovalLogEntry] = None,
    ) -> Optional[Policy]:
        try:
            result = self.db.execute(
                update(PolicyRecord)
                .where(PolicyRecord.id == policy_id, PolicyRecord.status == expected.value)
                .values(status=target.value, updated_at=now)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                self.db.rollback()
                return None
            if log_entry is not None:
                self.db.add(ApprovalLogRecord(
                    policy_id=policy_id,
                    approver_id=log_entry.approver_id,
                    approver_name=log_entry.approver_name,
                    action=log_entry.action.value,
                    comment=log_entry.comment,
                    timestamp=log_entry.timestamp,
                ))
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise PersistenceError(f"Could not transition policy '{policy_id}'") from exc
        self.db.expire_all()
        return self.get(policy_id)

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
        try:
            result = self.db.execute(
                update(PolicyRecord)
                .where(PolicyRecord.id == policy_id, PolicyRecord.status == expected.value)
                .values(updated_at=now, **_column_values(changes))
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                self.db.rollback()
                return None
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise PersistenceError(f"Could not update policy '{policy_id}'") from exc
        self.db.expire_all()
        return self.get(policy_id)

    def delete(self, policy_id: str, *, expected: PolicyStatus) -> bool:
        try:
            # Children first; the rollback below restores them if the swap loses.
            self.db.execute(
                delete(ApprovalLogRecord).where(ApprovalLogRecord.policy_id == policy_id)
            )
            result = self.db.execute(
                delete(PolicyRecord)
                .where(PolicyRecord.id == policy_id, PolicyRecord.status == expected.value)
                .execution_options(synchronize_session=False)
            )
            if result.rowcount != 1:
                self.db.rollback()
                return False
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise PersistenceError(f"Could not delete policy '{policy_id}'") from exc
        self.db.expire_all()
        return True
