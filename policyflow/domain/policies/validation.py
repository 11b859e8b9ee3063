"""Input validation for policy records.

Pydantic does the schema work:
- unknown fields are rejected (``extra="forbid"``)
- keys may be camelCase (``customerName``) or snake_case
- workflow-managed fields get a dedicated message

Pydantic errors never leave this module; they are turned into the engine's
``ValidationError``.
"""

from __future__ import annotations

import math
from typing import Any, Mapping, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from policyflow.core.errors import ValidationError
from .entities import Decision, ProductType

# Fields owned by the workflow itself, never settable by a client.
MANAGED_FIELDS = frozenset({
    "id",
    "status",
    "fraudCheck",
    "fraud_check",
    "approvalLogs",
    "approval_logs",
    "createdBy",
    "created_by",
    "creatorName",
    "creator_name",
    "createdAt",
    "created_at",
    "updatedAt",
    "updated_at",
})

_MODEL_CONFIG = ConfigDict(
    extra="forbid",
    alias_generator=to_camel,
    populate_by_name=True,
    str_strip_whitespace=True,
    frozen=True,
)


def _check_premium(value: Any) -> Any:
    # bool is an int subclass; "500" must not sneak through lax coercion either.
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise ValueError("premiumAmount must be a number")
    try:
        finite = math.isfinite(value)
    except OverflowError:
        # ints past float range, e.g. a 400-digit JSON literal
        raise ValueError("premiumAmount is out of range") from None
    if not finite:
        raise ValueError("premiumAmount must be finite")
    return value


class PolicyAttributes(BaseModel):
    """The business attributes of a new policy."""

    model_config = _MODEL_CONFIG

    customer_name: str = Field(min_length=1)
    premium_amount: float = Field(ge=0)
    product_type: ProductType

    @field_validator("premium_amount", mode="before")
    @classmethod
    def _premium_is_number(cls, value: Any) -> Any:
        return _check_premium(value)


class PolicyPatch(BaseModel):
    """A partial update; only the fields present are applied."""

    model_config = _MODEL_CONFIG

    customer_name: Optional[str] = Field(default=None, min_length=1)
    premium_amount: Optional[float] = Field(default=None, ge=0)
    product_type: Optional[ProductType] = None

    @field_validator("customer_name", "product_type", mode="before")
    @classmethod
    def _not_null(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("field may be omitted but not null")
        return value

    @field_validator("premium_amount", mode="before")
    @classmethod
    def _premium_is_number(cls, value: Any) -> Any:
        return _check_premium(value)

    def changes(self) -> dict[str, Any]:
        """Snake_case attribute -> new value, for the fields actually sent."""
        return {name: getattr(self, name) for name in self.model_fields_set}


class DecisionInput(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    action: Decision
    comment: str = ""

    @field_validator("comment", mode="before")
    @classmethod
    def _default_comment(cls, value: Any) -> Any:
        return "" if value is None else value


def _format_errors(exc: PydanticValidationError) -> str:
    parts = []
    for err in exc.errors():
        location = ".".join(str(p) for p in err.get("loc", ())) or "record"
        parts.append(f"{location}: {err.get('msg')}")
    return "; ".join(parts)


def _ensure_mapping(data: Any, what: str) -> Mapping[str, Any]:
    if not isinstance(data, Mapping):
        raise ValidationError(f"{what} must be a mapping of field names to values")
    managed = sorted(k for k in data if k in MANAGED_FIELDS)
    if managed:
        raise ValidationError(
            f"Fields managed by the workflow cannot be set: {', '.join(managed)}"
        )
    return data


def parse_attributes(data: Any) -> PolicyAttributes:
    if isinstance(data, PolicyAttributes):
        return data
    record = _ensure_mapping(data, "Policy")
    try:
        return PolicyAttributes.model_validate(dict(record))
    except PydanticValidationError as exc:
        raise ValidationError(_format_errors(exc)) from None


def parse_patch(data: Any) -> PolicyPatch:
    if isinstance(data, PolicyPatch):
        patch = data
    else:
        record = _ensure_mapping(data, "Patch")
        try:
            patch = PolicyPatch.model_validate(dict(record))
        except PydanticValidationError as exc:
            raise ValidationError(_format_errors(exc)) from None

    if not patch.model_fields_set:
        raise ValidationError(
            "Patch must set at least one of customerName, premiumAmount, productType"
        )
    return patch


def parse_decision(action: Any, comment: Any = "") -> DecisionInput:
    try:
        return DecisionInput.model_validate({"action": action, "comment": comment})
    except PydanticValidationError:
        raise ValidationError(
            'Invalid action. Must be "approve" or "reject" with a text comment'
        ) from None
