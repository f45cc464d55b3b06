"""Acting-user model decoded from the console's bearer token."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from hrconsole.common.constants import PERMISSIONS, UserRole


class Actor(BaseModel):
    """The user on whose behalf an operation runs.

    ``token`` is forwarded to the HR backend unchanged; the backend remains
    the authority on what the user may do.
    """

    id: str
    role: UserRole = UserRole.employee
    permissions: list[str] = Field(default_factory=list)
    name: Optional[str] = None
    token: Optional[str] = Field(default=None, repr=False, exclude=True)

    @property
    def capabilities(self) -> set[str]:
        return set(PERMISSIONS.get(self.role, [])) | set(self.permissions)

    def can(self, capability: str) -> bool:
        return capability in self.capabilities
