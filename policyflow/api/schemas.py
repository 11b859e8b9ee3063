import dataclasses
from typing import Any, List, Optional
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from policyflow.domain.policies import (
    ApprovalAction,
    Decision,
    Policy,
    PolicyStatus,
    ProductType,
)


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
    )


class FraudCheckOut(_CamelModel):
    passed: bool
    checked_at: Optional[datetime] = None


class ApprovalLogOut(_CamelModel):
    approver_id: str
    approver_name: str
    action: ApprovalAction
    comment: str
    timestamp: datetime


class PolicyOut(_CamelModel):
    """A policy as returned to HTTP clients."""

    id: str
    customer_name: str
    premium_amount: float
    product_type: ProductType
    status: PolicyStatus
    fraud_check: FraudCheckOut
    created_by: str
    creator_name: str
    approval_logs: List[ApprovalLogOut]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_entity(cls, policy: Policy) -> "PolicyOut":
        return cls.model_validate(dataclasses.asdict(policy))


class DecisionRequest(BaseModel):
    """Body of an approve/reject call.

    Both fields take any JSON value; the engine validates them and answers
    with the same ``{"error", "reason"}`` body as every other 4xx.
    """

    action: Any = Field(
        default=None,
        description=f"One of: {', '.join(d.value for d in Decision)}",
    )
    comment: Any = Field(default="", description="Free text, may be empty")


class ErrorOut(BaseModel):
    """Body of every 4xx answer raised by the engine."""

    error: str
    reason: str


class MessageOut(BaseModel):
    message: str
