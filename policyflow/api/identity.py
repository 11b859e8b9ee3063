"""Identity adapter.

Authentication happens upstream (gateway / auth service). By the time a
request reaches us it carries the resolved identity in headers, which this
dependency turns into an ``Actor``.
"""
from typing import Optional

from fastapi import Header, HTTPException

from policyflow.domain.policies import Actor, Role


def get_actor(
    x_user_id: Optional[str] = Header(default=None),
    x_user_name: Optional[str] = Header(default=None),
    x_user_role: Optional[str] = Header(default=None),
) -> Actor:
    if not x_user_id or not x_user_role:
        raise HTTPException(status_code=401, detail="Missing caller identity")
    try:
        role = Role(x_user_role.strip().lower())
    except ValueError:
        raise HTTPException(status_code=401, detail=f"Unknown role '{x_user_role}'")
    return Actor(
        identity=x_user_id,
        display_name=x_user_name or x_user_id,
        role=role,
    )
