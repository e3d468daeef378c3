from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from shared.constants import Role


class CurrentUser(BaseModel):
    """Caller context from JWT; used by all services."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    id: UUID
    email: str = ""
    roles: list[Role] = Field(default_factory=list)

    @property
    def is_admin(self) -> bool:
        return Role.ADMIN in self.roles

    @property
    def primary_role(self) -> Role:
        """Most privileged role, used when recording who changed something."""
        for role in (Role.ADMIN, Role.INSTRUCTOR):
            if role in self.roles:
                return role
        return Role.STUDENT
