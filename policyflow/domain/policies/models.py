from sqlalchemy import (
    Boolean, Column, DateTime, Float, ForeignKey, Integer, String, Text,
)
from sqlalchemy.orm import relationship

from policyflow.db.connection import Base


class PolicyRecord(Base):
    __tablename__ = "policies"

    id = Column(String, primary_key=True)
    customer_name = Column(String, nullable=False)
    premium_amount = Column(Float, nullable=False)
    product_type = Column(String, nullable=False)
    status = Column(String, nullable=False, index=True)
    fraud_passed = Column(Boolean, nullable=False)
    fraud_checked_at = Column(DateTime(timezone=True), nullable=True)
    created_by = Column(String, nullable=False, index=True)
    creator_name = Column(String, nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    approval_logs = relationship(
        "ApprovalLogRecord",
        order_by="ApprovalLogRecord.seq",
        lazy="selectin",
    )


class ApprovalLogRecord(Base):
    __tablename__ = "policy_approval_logs"

    # Insertion order of the audit trail
    seq = Column(Integer, primary_key=True, autoincrement=True)
    policy_id = Column(String, ForeignKey("policies.id"), nullable=False, index=True)
    approver_id = Column(String, nullable=False)
    approver_name = Column(String, nullable=False)
    action = Column(String, nullable=False)
    comment = Column(Text, nullable=False, default="")
    timestamp = Column(DateTime(timezone=True), nullable=False)
