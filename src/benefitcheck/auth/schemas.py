"""
Auth-specific Pydantic schemas.

Identity is established upstream; this service only consumes it.
"""

from pydantic import BaseModel, Field

from benefitcheck.auth.constants import Role


class User(BaseModel):
    """Authenticated requester."""

    id: str = Field(..., description="User's unique identifier")
    role: Role = Field(default=Role.USER, description="User's role")

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN
