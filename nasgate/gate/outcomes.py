"""Typed outcomes shared by every gate stage.

Gates never raise past their boundary: they return either their success value or a
``Rejection``. The pipeline turns the first rejection into a response.
"""

import enum
from dataclasses import dataclass


class ErrorKind(str, enum.Enum):
    ACCESS_DENIED = "access_denied"
    NOT_FOUND = "not_found"
    BAD_REQUEST = "bad_request"
    METHOD_NOT_ALLOWED = "method_not_allowed"
    CONFLICT = "conflict"
    UNAUTHENTICATED = "unauthenticated"
    FORBIDDEN = "forbidden"
    RATE_LIMITED = "rate_limited"
    SETUP_REQUIRED = "setup_required"
    SETUP_ALREADY_COMPLETED = "setup_already_completed"
    INTERNAL_ERROR = "internal_error"


STATUS_CODES: dict[ErrorKind, int] = {
    ErrorKind.ACCESS_DENIED: 403,
    ErrorKind.NOT_FOUND: 404,
    ErrorKind.BAD_REQUEST: 400,
    ErrorKind.METHOD_NOT_ALLOWED: 405,
    ErrorKind.CONFLICT: 409,
    ErrorKind.UNAUTHENTICATED: 401,
    ErrorKind.FORBIDDEN: 403,
    ErrorKind.RATE_LIMITED: 429,
    # API clients get a 200 with requiresSetup so setup-aware frontends can redirect.
    ErrorKind.SETUP_REQUIRED: 200,
    ErrorKind.SETUP_ALREADY_COMPLETED: 403,
    ErrorKind.INTERNAL_ERROR: 500,
}

# Where a browser page request is sent instead of an error body.
PAGE_REDIRECTS: dict[ErrorKind, str] = {
    ErrorKind.UNAUTHENTICATED: "/login",
    ErrorKind.SETUP_REQUIRED: "/setup",
    ErrorKind.SETUP_ALREADY_COMPLETED: "/",
}


@dataclass(frozen=True)
class Rejection:
    """
    A stage's refusal to let a request continue.

    message_key is a translation key; message is used verbatim when there is no key.
    detail is for server logs only and never reaches the client.
    """

    kind: ErrorKind
    message_key: str | None = None
    message: str | None = None
    redirect: str | None = None
    retry_after: float | None = None
    detail: str | None = None

    @property
    def status_code(self) -> int:
        return STATUS_CODES[self.kind]


class GateRejected(Exception):
    """Carries a Rejection out of a FastAPI dependency or handler to the rejection renderer."""

    def __init__(self, rejection: Rejection) -> None:
        self.rejection = rejection
        super().__init__(rejection.kind.value)


def access_denied() -> Rejection:
    return Rejection(ErrorKind.ACCESS_DENIED, message_key="fileAccessDenied")


def not_found(message_key: str = "fileNotFound") -> Rejection:
    return Rejection(ErrorKind.NOT_FOUND, message_key=message_key)


def bad_request(message: str | None = None, message_key: str | None = None) -> Rejection:
    return Rejection(ErrorKind.BAD_REQUEST, message_key=message_key, message=message)


def unauthenticated() -> Rejection:
    return Rejection(ErrorKind.UNAUTHENTICATED, message_key="loginRequired", redirect="/login")


def forbidden(message_key: str = "adminRequired", message: str | None = None) -> Rejection:
    return Rejection(ErrorKind.FORBIDDEN, message_key=message_key, message=message)


def rate_limited(retry_after: float) -> Rejection:
    return Rejection(ErrorKind.RATE_LIMITED, message_key="tooManyRequests", retry_after=retry_after)


def setup_required() -> Rejection:
    return Rejection(ErrorKind.SETUP_REQUIRED, message_key="setupRequired", redirect="/setup")


def setup_already_completed() -> Rejection:
    return Rejection(ErrorKind.SETUP_ALREADY_COMPLETED, message_key="setupAlreadyCompleted")


def internal_error(detail: str | None = None) -> Rejection:
    return Rejection(ErrorKind.INTERNAL_ERROR, message_key="internalError", detail=detail)
