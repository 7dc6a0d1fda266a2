from enum import Enum

from pydantic import BaseModel, ConfigDict


class Role(str, Enum):
    ADMIN = "admin"
    OFFICER = "officer"
    HOMEOWNER = "homeowner"


STAFF_ROLES = (Role.ADMIN, Role.OFFICER)


class CurrentUser(BaseModel):
    """Authenticated caller, as read from the bearer token."""

    user_id: str
    role: Role

    model_config = ConfigDict(frozen=True)

    def is_staff(self) -> bool:
        return self.role in STAFF_ROLES
