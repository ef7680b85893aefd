"""Session login/logout and authentication status."""

from typing import Annotated

from fastapi import APIRouter, Depends, Request, Response
from sqlalchemy.orm import Session

from nasgate.core.database import get_db
from nasgate.core.logging_config import log_auth
from nasgate.core.sessions import SessionData
from nasgate.gate.context import RequestContext
from nasgate.gate.outcomes import ErrorKind, GateRejected, Rejection, bad_request
from nasgate.gate.pipeline import get_context, require_user, translate
from nasgate.schemas.auth import (
    AuthResponse,
    AuthStatusResponse,
    LoginRequest,
    MessageResponse,
    UserSummary,
)
from nasgate.services.session_store import close_session, open_session
from nasgate.services.users import authenticate, get_user_by_id, update_last_login

router = APIRouter()


@router.post("/login", response_model=AuthResponse)
def login(
    body: LoginRequest,
    request: Request,
    response: Response,
    db: Annotated[Session, Depends(get_db)],
) -> AuthResponse:
    """
    Authenticate with username and password and start a session.
    A server-side session row is opened and its id carried in an HttpOnly cookie;
    the body echoes the user.
    """
    ctx = get_context(request)
    if not body.username or not body.password:
        raise GateRejected(bad_request(message_key="invalidCredentials"))

    user = authenticate(db, body.username, body.password)
    if user is None:
        log_auth("LOGIN_FAILED", body.username, ctx.client_ip, False)
        raise GateRejected(Rejection(ErrorKind.UNAUTHENTICATED, message_key="invalidCredentials"))

    update_last_login(db, user)
    sessions = request.app.state.sessions
    session = SessionData(
        user_id=user.id,
        session_id=open_session(db, user.id, sessions.max_age),
        username=user.username,
        role=user.role,
        language=ctx.session.language,
    )
    sessions.save(response, session)
    log_auth("LOGIN_SUCCESS", user.username, ctx.client_ip, True)
    return AuthResponse(message=translate(request, "loginSuccess"), user=UserSummary.model_validate(user))


@router.post("/logout", response_model=MessageResponse)
def logout(
    request: Request,
    response: Response,
    ctx: Annotated[RequestContext, Depends(require_user)],
    db: Annotated[Session, Depends(get_db)],
) -> MessageResponse:
    """Delete the server-side session row and clear the cookie. A kept copy of the cookie no longer authenticates."""
    close_session(db, ctx.session.session_id)
    request.app.state.sessions.clear(response)
    log_auth("LOGOUT", ctx.session.username, ctx.client_ip, True)
    return MessageResponse(message=translate(request, "logoutSuccess"))


@router.get("/status", response_model=AuthStatusResponse, response_model_exclude_none=True)
def auth_status(
    request: Request,
    db: Annotated[Session, Depends(get_db)],
) -> AuthStatusResponse:
    """Whether the caller's session maps to an active account, and which."""
    ctx = get_context(request)
    if not ctx.session.is_authenticated:
        return AuthStatusResponse(authenticated=False)
    user = get_user_by_id(db, ctx.session.user_id)
    if user is None:
        return AuthStatusResponse(authenticated=False)
    return AuthStatusResponse(authenticated=True, user=UserSummary.model_validate(user))
