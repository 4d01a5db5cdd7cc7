from typing import Optional

from fastapi import Header, HTTPException, Request, status

from uniform_workflow.models.enums.actor_role import ActorRole
from uniform_workflow.schemas.support.actor_schemas import Actor
from uniform_workflow.utils.logger import get_logger

logger = get_logger("auth.guard")


async def get_current_actor(
    request: Request,
    x_actor_id: Optional[str] = Header(None),
    x_actor_role: Optional[str] = Header(None),
    x_actor_name: Optional[str] = Header(None),
) -> Actor:
    """Acting user as asserted by the upstream gateway."""
    if not x_actor_id or not x_actor_role:
        logger.warning("Missing actor headers", extra={"path": request.url.path})
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Actor headers are required",
        )

    try:
        role = ActorRole(x_actor_role.lower())
    except ValueError:
        logger.warning("Unknown actor role", extra={"role": x_actor_role})
        raise HTTPException(status_code=403, detail="Unknown actor role")

    # system is reserved for scheduler jobs
    if role == ActorRole.SYSTEM:
        raise HTTPException(status_code=403, detail="System role cannot act over HTTP")

    actor = Actor(id=x_actor_id, role=role, name=x_actor_name)
    request.state.actor = actor
    return actor
