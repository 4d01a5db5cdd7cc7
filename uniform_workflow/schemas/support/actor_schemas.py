from typing import Optional
from pydantic import BaseModel

from uniform_workflow.models.enums.actor_role import ActorRole


class Actor(BaseModel):
    id: str
    role: ActorRole
    name: Optional[str] = None

    @property
    def display_name(self) -> str:
        return self.name or self.id

    @property
    def role_label(self) -> str:
        return self.role.value.replace("_", " ").title()


SYSTEM_ACTOR = Actor(id="system", role=ActorRole.SYSTEM, name="system")
