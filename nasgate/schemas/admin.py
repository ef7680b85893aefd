"""Request/response schemas for user and settings administration."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from nasgate.core.security import (
    EMAIL_MAX_LEN,
    PASSWORD_MAX_LEN,
    PASSWORD_MIN_LEN,
    USERNAME_MAX_LEN,
    USERNAME_MIN_LEN,
)
from nasgate.models.user import Role


class UserListItem(BaseModel):
    """User entry for the admin list (no password)."""

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    id: int
    username: str
    email: str | None = None
    role: Role
    is_active: bool = Field(alias="isActive")
    created_at: datetime | None = Field(default=None, alias="createdAt")
    last_login: datetime | None = Field(default=None, alias="lastLogin")


class UsersListResponse(BaseModel):
    success: bool = True
    users: list[UserListItem]


class CreateUserRequest(BaseModel):
    username: str = Field(..., min_length=USERNAME_MIN_LEN, max_length=USERNAME_MAX_LEN)
    email: str | None = Field(default=None, max_length=EMAIL_MAX_LEN)
    password: str = Field(..., min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)
    role: Role = Role.USER


class UpdateUserRequest(BaseModel):
    """Partial update; only fields present in the body are applied."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    email: str | None = Field(default=None, max_length=EMAIL_MAX_LEN)
    role: Role | None = None
    password: str | None = Field(default=None, min_length=PASSWORD_MIN_LEN, max_length=PASSWORD_MAX_LEN)
    is_active: bool | None = Field(default=None, alias="isActive")


class SettingsResponse(BaseModel):
    success: bool = True
    settings: dict[str, str | None]


class UpdateSettingsRequest(BaseModel):
    settings: dict[str, str]
