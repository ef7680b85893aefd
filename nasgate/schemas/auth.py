"""Request/response schemas for auth and setup endpoints."""

from pydantic import BaseModel, ConfigDict, Field

from nasgate.core.security import EMAIL_MAX_LEN, PASSWORD_MAX_LEN, USERNAME_MAX_LEN
from nasgate.models.user import Role


class LoginRequest(BaseModel):
    """Credentials for login. Emptiness is checked by the handler so it can answer with invalidCredentials."""

    username: str = Field(default="", max_length=USERNAME_MAX_LEN, description="Username")
    password: str = Field(default="", max_length=PASSWORD_MAX_LEN, description="Password")


class SetupRequest(BaseModel):
    """First administrator account."""

    username: str = Field(default="", max_length=USERNAME_MAX_LEN)
    email: str | None = Field(default=None, max_length=EMAIL_MAX_LEN)
    password: str = Field(default="", max_length=PASSWORD_MAX_LEN)


class UserSummary(BaseModel):
    """Public view of an account (no password hash)."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    role: Role


class AuthResponse(BaseModel):
    """Response for login and setup."""

    success: bool = True
    message: str
    user: UserSummary


class AuthStatusResponse(BaseModel):
    authenticated: bool
    user: UserSummary | None = None


class MessageResponse(BaseModel):
    success: bool = True
    message: str
