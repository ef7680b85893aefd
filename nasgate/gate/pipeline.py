"""
Request pipeline: SetupGate -> RateLimiter -> AuthGate -> PathGuard -> handler.

The cookie session is first checked against its server-side row; an unknown,
expired or revoked row leaves the request anonymous. The next two stages are global and run in ``AccessGateMiddleware`` before routing.
AuthGate and PathGuard run as FastAPI dependencies/helpers, so a route only reaches
its path check after authentication has passed. Every stage hands back a typed
Rejection; the first one short-circuits everything after it and is rendered here.
"""

import logging
import math
from datetime import timedelta
from typing import Annotated

from fastapi import Depends, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse, PlainTextResponse, RedirectResponse
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker
from starlette.concurrency import run_in_threadpool
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.responses import Response

from nasgate.core.database import get_db
from nasgate.core.logging_config import log_auth, log_error, log_file_access
from nasgate.core.sessions import SessionData
from nasgate.gate import auth_gate
from nasgate.gate.context import Identity, RequestContext
from nasgate.gate.outcomes import (
    PAGE_REDIRECTS,
    ErrorKind,
    GateRejected,
    Rejection,
    bad_request,
    forbidden,
    internal_error,
    not_found,
    unauthenticated,
)
from nasgate.gate.rate_limiter import RateLimiter, classes_for_path
from nasgate.services.session_store import is_session_live, touch_session
from nasgate.services.settings_store import SetupSnapshot, read_setup_state
from nasgate.services.users import get_user_by_id

logger = logging.getLogger(__name__)

SECURITY_HEADERS = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "same-origin",
}


def client_key(request: Request) -> str:
    return request.client.host if request.client else "unknown"


def is_api_path(path: str) -> bool:
    return path.startswith("/api/")


def read_snapshot(session_factory: sessionmaker[Session]) -> SetupSnapshot:
    with session_factory() as db:
        return read_setup_state(db)


def check_rate_limits(limiter: RateLimiter, ctx: RequestContext) -> Rejection | None:
    for limiter_class in classes_for_path(ctx.path):
        rejection = limiter.check(limiter_class, ctx.client_ip)
        if rejection is not None:
            log_auth("RATE_LIMIT_EXCEEDED", ctx.actor, ctx.client_ip, False, limiter_class.value)
            return rejection
    return None


def log_rejection(request: Request, rejection: Rejection) -> None:
    ctx: RequestContext | None = getattr(request.state, "context", None)
    actor = ctx.actor if ctx else None
    ip = ctx.client_ip if ctx else client_key(request)
    if rejection.kind is ErrorKind.INTERNAL_ERROR:
        level = logging.ERROR
    elif rejection.kind in (
        ErrorKind.SETUP_REQUIRED,
        ErrorKind.NOT_FOUND,
        ErrorKind.BAD_REQUEST,
        ErrorKind.METHOD_NOT_ALLOWED,
    ):
        level = logging.DEBUG
    else:
        level = logging.WARNING
    logger.log(
        level,
        "Rejected %s %s: kind=%s actor=%s ip=%s detail=%s",
        request.method,
        request.url.path,
        rejection.kind.value,
        actor or "anonymous",
        ip,
        rejection.detail or "",
    )


def render_rejection(request: Request, rejection: Rejection) -> Response:
    """
    API paths get ``{success: false, message, redirect?}`` JSON. Page paths get a
    redirect for the login/setup/home kinds and plain text otherwise.
    """
    translator = request.app.state.translator
    language = getattr(request.state, "language", None)
    if rejection.message_key:
        message = translator.translate(rejection.message_key, language)
    else:
        message = rejection.message or translator.translate("error", language)

    headers: dict[str, str] = {}
    if rejection.retry_after is not None:
        headers["Retry-After"] = str(max(1, math.ceil(rejection.retry_after)))

    if is_api_path(request.url.path):
        body: dict = {"success": False, "message": message}
        if rejection.redirect:
            body["redirect"] = rejection.redirect
        if rejection.kind is ErrorKind.SETUP_REQUIRED:
            body["requiresSetup"] = True
        return JSONResponse(body, status_code=rejection.status_code, headers=headers)

    redirect = PAGE_REDIRECTS.get(rejection.kind)
    if redirect is not None:
        return RedirectResponse(redirect, status_code=302)
    return PlainTextResponse(message, status_code=rejection.status_code, headers=headers)


def resolve_session(session_factory: sessionmaker[Session], claimed: SessionData) -> SessionData:
    """The cookie's session while its server-side row is live, otherwise an anonymous one."""
    with session_factory() as db:
        if is_session_live(db, claimed.session_id, claimed.user_id):
            return claimed
    return claimed.without_identity()


def refresh_session(session_factory: sessionmaker[Session], session_id: str, max_age: timedelta) -> None:
    with session_factory() as db:
        touch_session(db, session_id, max_age)


class AccessGateMiddleware(BaseHTTPMiddleware):
    """
    Resolves the session against the store, builds the RequestContext, runs the
    global stages, and keeps the session cookie sliding.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        state = request.app.state
        sessions = state.sessions
        ip = client_key(request)
        claimed = sessions.load(request)
        session = claimed
        rejection: Rejection | None = None
        if claimed.is_authenticated:
            try:
                session = await run_in_threadpool(resolve_session, state.session_factory, claimed)
            except SQLAlchemyError as e:
                log_error(e, "Session lookup failed", claimed.username, ip)
                session = claimed.without_identity()
                rejection = internal_error(detail="session store unavailable")

        ctx = RequestContext(session=session, client_ip=ip, path=request.url.path)
        request.state.context = ctx
        request.state.language = state.translator.resolve_language(request, session)

        if rejection is None:
            rejection = await run_in_threadpool(
                state.setup_gate.check,
                ctx.path,
                lambda: read_snapshot(state.session_factory),
                ctx.client_ip,
            )
        if rejection is None:
            rejection = check_rate_limits(state.rate_limiter, ctx)
        if rejection is not None:
            log_rejection(request, rejection)
            response = render_rejection(request, rejection)
        else:
            response = await call_next(request)
            if not sessions.writes_cookie(response):
                await self._maintain_cookie(request, response, claimed, session)

        for name, value in SECURITY_HEADERS.items():
            response.headers.setdefault(name, value)
        return response

    async def _maintain_cookie(
        self, request: Request, response: Response, claimed: SessionData, session: SessionData
    ) -> None:
        """Slide a live session; strip the identity from a cookie whose session is gone."""
        state = request.app.state
        sessions = state.sessions
        if session.is_authenticated:
            try:
                await run_in_threadpool(refresh_session, state.session_factory, session.session_id, sessions.max_age)
            except SQLAlchemyError as e:
                log_error(e, "Session refresh failed", session.username, client_key(request))
                return
            sessions.save(response, session)
        elif claimed.is_authenticated:
            log_auth("SESSION_REJECTED", claimed.username, client_key(request), False, "revoked or expired")
            if session.is_empty:
                sessions.clear(response)
            else:
                sessions.save(response, session)


def get_context(request: Request) -> RequestContext:
    return request.state.context


def translate(request: Request, key: str) -> str:
    return request.app.state.translator.translate(key, getattr(request.state, "language", None))


def require_user(request: Request) -> RequestContext:
    """Dependency: authenticated session required (401 / redirect to /login otherwise)."""
    outcome = auth_gate.require_authenticated(get_context(request))
    if isinstance(outcome, Rejection):
        raise GateRejected(outcome)
    return outcome


def require_admin(
    request: Request,
    db: Annotated[Session, Depends(get_db)],
) -> RequestContext:
    """Dependency: active admin required. Returns the context carrying the resolved Identity."""

    def lookup(user_id: int) -> Identity | None:
        user = get_user_by_id(db, user_id, active_only=False)
        return Identity.from_user(user) if user is not None else None

    outcome = auth_gate.require_admin(get_context(request), lookup)
    if isinstance(outcome, Rejection):
        raise GateRejected(outcome)
    return outcome


def guarded_path(request: Request, ctx: RequestContext, requested: str | None, action: str) -> str:
    """Run PathGuard for an already-authenticated request; logs and raises on AccessDenied."""
    outcome = request.app.state.path_guard.resolve(requested)
    if isinstance(outcome, Rejection):
        log_file_access(f"{action}_DENIED", requested or "/", ctx.actor, ctx.client_ip, False)
        raise GateRejected(outcome)
    return outcome


async def gate_rejected_handler(request: Request, exc: GateRejected) -> Response:
    log_rejection(request, exc.rejection)
    return render_rejection(request, exc.rejection)


async def validation_error_handler(request: Request, exc: RequestValidationError) -> Response:
    logger.debug("Request validation failed on %s: %s", request.url.path, exc.errors())
    return render_rejection(request, bad_request(message_key="invalidRequest"))


def rejection_for_status(status_code: int) -> Rejection:
    """Map a routing or framework HTTP error onto the rejection kinds."""
    if status_code == 404:
        return not_found("notFound")
    if status_code == 405:
        return Rejection(ErrorKind.METHOD_NOT_ALLOWED, message_key="methodNotAllowed")
    if status_code == 401:
        return unauthenticated()
    if status_code == 403:
        return forbidden("unauthorizedAccess")
    if status_code < 500:
        return bad_request(message_key="invalidRequest")
    return internal_error(detail=f"HTTP {status_code}")


async def http_error_handler(request: Request, exc: StarletteHTTPException) -> Response:
    rejection = rejection_for_status(exc.status_code)
    log_rejection(request, rejection)
    response = render_rejection(request, rejection)
    for name, value in (exc.headers or {}).items():
        response.headers.setdefault(name, value)
    return response


async def unhandled_error_handler(request: Request, exc: Exception) -> Response:
    ctx: RequestContext | None = getattr(request.state, "context", None)
    log_error(exc, f"Unhandled error on {request.method} {request.url.path}", ctx.actor if ctx else None, client_key(request))
    return render_rejection(request, internal_error(detail=repr(exc)))
