"""Pydantic request/response schemas."""

from nasgate.schemas.admin import (
    CreateUserRequest,
    SettingsResponse,
    UpdateSettingsRequest,
    UpdateUserRequest,
    UserListItem,
    UsersListResponse,
)
from nasgate.schemas.auth import (
    AuthResponse,
    AuthStatusResponse,
    LoginRequest,
    MessageResponse,
    SetupRequest,
    UserSummary,
)
from nasgate.schemas.browse import BrowseItem, BrowseResponse
from nasgate.schemas.health import HealthResponse
from nasgate.schemas.language import LanguageChangedResponse, LanguageRequest, TranslationsResponse

__all__ = [
    "AuthResponse",
    "AuthStatusResponse",
    "BrowseItem",
    "BrowseResponse",
    "CreateUserRequest",
    "HealthResponse",
    "LanguageChangedResponse",
    "LanguageRequest",
    "LoginRequest",
    "MessageResponse",
    "SettingsResponse",
    "SetupRequest",
    "TranslationsResponse",
    "UpdateSettingsRequest",
    "UpdateUserRequest",
    "UserListItem",
    "UsersListResponse",
]
