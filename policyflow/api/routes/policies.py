from typing import Any

from fastapi import APIRouter, Body, Depends
from sqlalchemy.orm import Session

from policyflow.api.core.container import Container, get_container
from policyflow.api.identity import get_actor
from policyflow.api.schemas import DecisionRequest, ErrorOut, MessageOut, PolicyOut
from policyflow.db.connection import get_db
from policyflow.domain.policies import (
    Actor,
    PolicyApprovalEngine,
    PolicyRepositoryProtocol,
)

ERROR_RESPONSES = {
    403: {"model": ErrorOut, "description": "Role, ownership or visibility check failed"},
    404: {"model": ErrorOut, "description": "No such policy"},
    409: {"model": ErrorOut, "description": "Status does not allow the operation"},
    422: {"model": ErrorOut, "description": "Malformed policy record or decision"},
}

router = APIRouter(prefix="/policies", tags=["Policies"], responses=ERROR_RESPONSES)


def get_policy_repo(
    db: Session = Depends(get_db),
    container: Container = Depends(get_container),
) -> PolicyRepositoryProtocol:
    return container.policy_repository(db)


def get_engine(
    repository: PolicyRepositoryProtocol = Depends(get_policy_repo),
    container: Container = Depends(get_container),
) -> PolicyApprovalEngine:
    return container.engine(repository)


@router.get(
    "",
    summary="List policies",
    description="Creators see their own policies; underwriters and managers see all of them.",
    response_model=list[PolicyOut],
)
async def list_policies(
    actor: Actor = Depends(get_actor),
    engine: PolicyApprovalEngine = Depends(get_engine),
):
    """Most recently created first."""
    return [PolicyOut.from_entity(p) for p in engine.list(actor)]


@router.get("/{policy_id}", response_model=PolicyOut)
async def get_policy(
    policy_id: str,
    actor: Actor = Depends(get_actor),
    engine: PolicyApprovalEngine = Depends(get_engine),
):
    return PolicyOut.from_entity(engine.get(policy_id, actor))


@router.post("", status_code=201, response_model=PolicyOut)
async def create_policy(
    payload: dict[str, Any] = Body(...),
    actor: Actor = Depends(get_actor),
    engine: PolicyApprovalEngine = Depends(get_engine),
):
    """
    Create a policy and run the fraud check.

    Body fields: customerName, premiumAmount, productType.
    """
    return PolicyOut.from_entity(engine.create(payload, actor))


@router.put("/{policy_id}", response_model=PolicyOut)
async def update_policy(
    policy_id: str,
    payload: dict[str, Any] = Body(...),
    actor: Actor = Depends(get_actor),
    engine: PolicyApprovalEngine = Depends(get_engine),
):
    """Patch business attributes, subject to the active edit rules."""
    return PolicyOut.from_entity(engine.update(policy_id, actor, payload))


@router.post("/{policy_id}/submit", response_model=PolicyOut)
async def submit_policy(
    policy_id: str,
    actor: Actor = Depends(get_actor),
    engine: PolicyApprovalEngine = Depends(get_engine),
):
    return PolicyOut.from_entity(engine.submit(policy_id, actor))


@router.post("/{policy_id}/approve", response_model=PolicyOut)
async def decide_policy(
    policy_id: str,
    body: DecisionRequest,
    actor: Actor = Depends(get_actor),
    engine: PolicyApprovalEngine = Depends(get_engine),
):
    """Approve or reject, as underwriter or manager depending on the caller's role."""
    policy = engine.decide(policy_id, actor, body.action, body.comment)
    return PolicyOut.from_entity(policy)


@router.delete("/{policy_id}", response_model=MessageOut)
async def delete_policy(
    policy_id: str,
    actor: Actor = Depends(get_actor),
    engine: PolicyApprovalEngine = Depends(get_engine),
):
    engine.delete(policy_id, actor)
    return MessageOut(message="Policy deleted successfully")
