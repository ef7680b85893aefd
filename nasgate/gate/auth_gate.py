"""Authentication and admin authorization checks over an explicit RequestContext."""

from collections.abc import Callable
from typing import assert_never

from sqlalchemy.exc import SQLAlchemyError

from nasgate.core.logging_config import log_auth, log_error
from nasgate.gate.context import Identity, RequestContext
from nasgate.gate.outcomes import Rejection, forbidden, internal_error, unauthenticated
from nasgate.models.user import Role


IdentityLookup = Callable[[int], Identity | None]


def require_authenticated(ctx: RequestContext) -> RequestContext | Rejection:
    """Pass iff the session carries a user id. Does not touch the store."""
    if ctx.session.is_authenticated:
        return ctx
    return unauthenticated()


def require_admin(ctx: RequestContext, lookup: IdentityLookup) -> RequestContext | Rejection:
    """
    Authenticate, then load the identity by id and require an active admin.

    Returns the context augmented with the resolved Identity so handlers do not look
    it up again. A missing, inactive or non-admin identity is FORBIDDEN; a store
    failure is INTERNAL_ERROR, never FORBIDDEN.
    """
    authenticated = require_authenticated(ctx)
    if isinstance(authenticated, Rejection):
        return authenticated

    user_id = ctx.session.user_id
    try:
        identity = lookup(user_id)
    except SQLAlchemyError as e:
        log_error(e, "Admin check failed: identity lookup error", ctx.session.username, ctx.client_ip)
        return internal_error(detail=f"identity lookup failed for user {user_id}")

    if identity is None or not identity.active:
        log_auth("ADMIN_ACCESS_DENIED", ctx.session.username, ctx.client_ip, False, "unknown or inactive account")
        return forbidden()

    role = identity.role
    if role is Role.ADMIN:
        return ctx.with_identity(identity)
    if role is Role.USER:
        log_auth("ADMIN_ACCESS_DENIED", identity.username, ctx.client_ip, False)
        return forbidden()
    assert_never(role)
