"""
User API schemas.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from ecommerce_api.auth.schemas import EMAIL_PATTERN


class CreateUserRequest(BaseModel):
    email: str = Field(..., min_length=5, max_length=100, pattern=EMAIL_PATTERN)
    password: str = Field(..., min_length=8, max_length=128)
    role: str = Field(default="User", pattern=r"^(Admin|User)$")


class ChangePasswordRequest(BaseModel):
    # Admins changing someone else's password may omit it.
    old_password: str | None = Field(default=None, max_length=128)
    new_password: str = Field(..., min_length=8, max_length=128)
