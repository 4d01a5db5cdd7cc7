from fastapi import Depends, HTTPException, status

from uniform_workflow.models.enums.actor_role import ActorRole
from uniform_workflow.schemas.support.actor_schemas import Actor
from uniform_workflow.utils.get_user import get_current_actor
from uniform_workflow.utils.logger import get_logger

logger = get_logger("auth.guard")


def require_role(roles: list[str | ActorRole]):
    allowed = {ActorRole(r.lower()) if isinstance(r, str) else r for r in roles}

    async def role_checker(actor: Actor = Depends(get_current_actor)) -> Actor:
        if actor.role not in allowed:
            logger.warning(
                "Role not allowed",
                extra={"actor_id": actor.id, "role": actor.role.value, "allowed": sorted(r.value for r in allowed)},
            )
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Permission denied"
            )
        return actor
    return role_checker
