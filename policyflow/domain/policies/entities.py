# ============================================================
# Business/domain entities
# ============================================================
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class Role(str, Enum):
    CREATOR = "creator"
    UNDERWRITER = "underwriter"
    MANAGER = "manager"


class PolicyStatus(str, Enum):
    DRAFT = "draft"
    PENDING_UNDERWRITER = "pending_underwriter"
    PENDING_MANAGER = "pending_manager"
    APPROVED = "approved"
    REJECTED = "rejected"


class ProductType(str, Enum):
    LIFE = "life"
    HEALTH = "health"
    AUTO = "auto"
    HOME = "home"
    BUSINESS = "business"


class Decision(str, Enum):
    """What a reviewer asks for."""

    APPROVE = "approve"
    REJECT = "reject"


class ApprovalAction(str, Enum):
    """What the approval log records."""

    APPROVED = "approved"
    REJECTED = "rejected"


@dataclass(frozen=True)
class Actor:
    """Resolved caller identity, as handed over by the identity provider."""

    identity: str
    display_name: str
    role: Role


@dataclass(frozen=True)
class FraudCheck:
    passed: bool
    checked_at: Optional[datetime] = None


@dataclass(frozen=True)
class ApprovalLogEntry:
    approver_id: str
    approver_name: str
    action: ApprovalAction
    comment: str
    timestamp: datetime


@dataclass(frozen=True)
class Policy:
    id: str
    customer_name: str
    premium_amount: float
    product_type: ProductType
    status: PolicyStatus
    fraud_check: FraudCheck
    created_by: str
    creator_name: str
    created_at: datetime
    updated_at: datetime
    approval_logs: tuple[ApprovalLogEntry, ...] = field(default_factory=tuple)

    def is_owned_by(self, actor: Actor) -> bool:
        return actor.role is Role.CREATOR and self.created_by == actor.identity
