# backend/equipdb/apps/accounts/schemas.py

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, EmailStr, Field

from equipdb.schemas import APIModel
from .models import UserRole

# ---------------------------------------------------------------------------
# USER SCHEMAS
# ---------------------------------------------------------------------------


class UserBase(APIModel):
    name: str = Field(..., min_length=2, max_length=50)
    email: EmailStr
    role: UserRole = UserRole.MANAGER


class UserCreate(UserBase):
    """
    Used by the bootstrap script. There is no public sign-up endpoint.
    """

    password: str = Field(..., min_length=8)


class UserRead(UserBase):
    """Never carries the password hash."""

    id: str
    is_active: bool
    created_at: datetime


class RoleUpdate(APIModel):
    # Plain string so an unknown value reaches the router and gets the
    # "Invalid role" message instead of a generic validation error.
    role: str


class RoleUpdateResponse(APIModel):
    message: str
    user: UserRead


# ---------------------------------------------------------------------------
# AUTH
# ---------------------------------------------------------------------------


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class Token(BaseModel):
    # OAuth2 field names, not camelCase.
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: UserRead


class TokenData(BaseModel):
    sub: str
    role: UserRole | None = None
    exp: int | None = None
