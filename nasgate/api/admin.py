"""User and settings administration (admin only)."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from nasgate.core.database import get_db
from nasgate.core.logging_config import log_admin
from nasgate.gate.context import RequestContext
from nasgate.gate.outcomes import ErrorKind, GateRejected, Rejection, bad_request, forbidden, not_found
from nasgate.gate.pipeline import require_admin, translate
from nasgate.models.user import Role
from nasgate.schemas.admin import (
    CreateUserRequest,
    SettingsResponse,
    UpdateSettingsRequest,
    UpdateUserRequest,
    UserListItem,
    UsersListResponse,
)
from nasgate.schemas.auth import AuthResponse, MessageResponse, UserSummary
from nasgate.services import settings_store, users
from nasgate.services.users import UsernameTakenError, UserNotFoundError

router = APIRouter()

AdminContext = Annotated[RequestContext, Depends(require_admin)]
DbSession = Annotated[Session, Depends(get_db)]


@router.get("/users", response_model=UsersListResponse)
def list_users(_admin: AdminContext, db: DbSession) -> UsersListResponse:
    """All accounts, newest first, including deactivated ones."""
    return UsersListResponse(users=[UserListItem.model_validate(u) for u in users.list_users(db)])


@router.post("/users", response_model=AuthResponse)
def create_user(
    body: CreateUserRequest,
    request: Request,
    ctx: AdminContext,
    db: DbSession,
) -> AuthResponse:
    username = body.username.strip()
    if not username:
        raise GateRejected(bad_request(message_key="setupFieldsRequired"))
    try:
        user = users.create_user(
            db,
            username,
            body.password,
            role=body.role,
            email=body.email,
            created_by=ctx.identity.id,
        )
    except UsernameTakenError as e:
        raise GateRejected(Rejection(ErrorKind.CONFLICT, message_key="usernameTaken")) from e
    log_admin("USER_CREATED", ctx.identity.username, username, ctx.client_ip, f"role={user.role.value}")
    return AuthResponse(message=translate(request, "userCreated"), user=UserSummary.model_validate(user))


@router.put("/users/{user_id}", response_model=MessageResponse)
def update_user(
    user_id: int,
    body: UpdateUserRequest,
    request: Request,
    ctx: AdminContext,
    db: DbSession,
) -> MessageResponse:
    """
    Partial update of email, role, password or active flag.

    An admin cannot demote or deactivate their own account. Admin accounts can be
    neither deactivated nor demoted here, so an admin can never be turned into a
    deletable account.
    """
    updates = body.model_dump(exclude_unset=True)
    for field in ("role", "password", "is_active"):
        if field in updates and updates[field] is None:
            del updates[field]
    if not updates:
        raise GateRejected(bad_request(message_key="invalidRequest"))

    target = users.get_user_by_id(db, user_id, active_only=False)
    if target is None:
        raise GateRejected(not_found("userNotFound"))

    demotes = "role" in updates and updates["role"] is not Role.ADMIN
    deactivates = updates.get("is_active") is False
    if user_id == ctx.identity.id and (demotes or deactivates):
        raise GateRejected(forbidden("cannotModifySelf"))
    if target.role is Role.ADMIN and deactivates:
        raise GateRejected(forbidden("cannotDeleteAdmin"))
    if target.role is Role.ADMIN and demotes:
        log_admin("USER_DEMOTE_DENIED", ctx.identity.username, f"ID:{user_id}", ctx.client_ip, "admin role")
        raise GateRejected(forbidden("cannotDemoteAdmin"))

    try:
        users.update_user(db, user_id, updates)
    except UserNotFoundError as e:
        raise GateRejected(not_found("userNotFound")) from e
    log_admin("USER_UPDATED", ctx.identity.username, f"ID:{user_id}", ctx.client_ip, ",".join(sorted(updates)))
    return MessageResponse(message=translate(request, "userUpdated"))


@router.delete("/users/{user_id}", response_model=MessageResponse)
def delete_user(
    user_id: int,
    request: Request,
    ctx: AdminContext,
    db: DbSession,
) -> MessageResponse:
    """
    Deactivate an account. Rejected for the caller's own account and for any
    account with the admin role, whoever asks.
    """
    if user_id == ctx.identity.id:
        log_admin("USER_DELETE_DENIED", ctx.identity.username, f"ID:{user_id}", ctx.client_ip, "own account")
        raise GateRejected(forbidden("cannotDeleteSelf"))

    target = users.get_user_by_id(db, user_id)
    if target is None:
        raise GateRejected(not_found("userNotFound"))
    if target.role is Role.ADMIN:
        log_admin("USER_DELETE_DENIED", ctx.identity.username, f"ID:{user_id}", ctx.client_ip, "admin role")
        raise GateRejected(forbidden("cannotDeleteAdmin"))

    users.deactivate_user(db, target)
    log_admin("USER_DELETED", ctx.identity.username, f"ID:{user_id}", ctx.client_ip)
    return MessageResponse(message=translate(request, "userDeleted"))


@router.get("/settings", response_model=SettingsResponse)
def get_admin_settings(_admin: AdminContext, db: DbSession) -> SettingsResponse:
    return SettingsResponse(settings=settings_store.get_all_settings(db))


@router.put("/settings", response_model=MessageResponse)
def update_settings(
    body: UpdateSettingsRequest,
    request: Request,
    ctx: AdminContext,
    db: DbSession,
) -> MessageResponse:
    """Upsert several settings at once. setup_completed is owned by the setup flow."""
    read_only = sorted(set(body.settings) & settings_store.READ_ONLY_KEYS)
    if read_only:
        raise GateRejected(bad_request(message_key="readOnlySetting"))
    for key, value in body.settings.items():
        settings_store.set_setting(db, key, value, updated_by=ctx.identity.id, commit=False)
    db.commit()
    log_admin("SETTINGS_UPDATED", ctx.identity.username, "", ctx.client_ip, ", ".join(sorted(body.settings)))
    return MessageResponse(message=translate(request, "settingsUpdated"))
