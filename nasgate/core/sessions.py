"""
Cookie-carried sessions: an immutable SessionData value signed into an HttpOnly cookie.

The cookie names a server-side session row (the `jti` claim); whether that row is
still live is checked by the request pipeline, not here.
"""

import logging
from dataclasses import dataclass, replace
from datetime import timedelta
from typing import Any

import jwt
from starlette.requests import HTTPConnection
from starlette.responses import Response

from nasgate.core.security import create_session_token, decode_session_token
from nasgate.models.user import Role

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SessionData:
    """What the cookie claims about the caller. Without both user_id and session_id it is anonymous."""

    user_id: int | None = None
    session_id: str | None = None
    username: str | None = None
    role: Role | None = None
    language: str | None = None

    @classmethod
    def anonymous(cls) -> "SessionData":
        return cls()

    @property
    def is_authenticated(self) -> bool:
        return bool(self.user_id and self.session_id)

    @property
    def is_empty(self) -> bool:
        return not self.is_authenticated and self.language is None

    def with_language(self, language: str) -> "SessionData":
        return replace(self, language=language)

    def without_identity(self) -> "SessionData":
        """Anonymous session that keeps only the language preference."""
        return SessionData(language=self.language)

    def to_claims(self) -> dict[str, Any]:
        claims: dict[str, Any] = {}
        if self.is_authenticated:
            claims["sub"] = str(self.user_id)
            claims["jti"] = self.session_id
            claims["username"] = self.username
            claims["role"] = self.role.value if self.role else None
        if self.language:
            claims["lang"] = self.language
        return claims

    @classmethod
    def from_claims(cls, claims: dict[str, Any]) -> "SessionData":
        language = claims.get("lang") or None
        sub = claims.get("sub")
        session_id = claims.get("jti")
        if not sub or not session_id:
            return cls(language=language)
        try:
            user_id = int(sub)
            role = Role(claims.get("role"))
        except (TypeError, ValueError):
            return cls(language=language)
        return cls(
            user_id=user_id,
            session_id=str(session_id),
            username=claims.get("username"),
            role=role,
            language=language,
        )


class SessionManager:
    """Reads and writes the session cookie; the only place that knows the cookie format."""

    def __init__(
        self,
        secret: str,
        cookie_name: str,
        max_age: timedelta,
        secure: bool = False,
    ) -> None:
        self._secret = secret
        self.cookie_name = cookie_name
        self.max_age = max_age
        self.secure = secure

    def load(self, connection: HTTPConnection) -> SessionData:
        """Decode the request cookie. Missing, tampered or expired cookies give an anonymous session."""
        token = connection.cookies.get(self.cookie_name)
        if not token:
            return SessionData.anonymous()
        try:
            claims = decode_session_token(token, self._secret)
        except jwt.PyJWTError as e:
            logger.debug("Discarding invalid session cookie: %s", e)
            return SessionData.anonymous()
        return SessionData.from_claims(claims)

    def save(self, response: Response, session: SessionData) -> None:
        token = create_session_token(session.to_claims(), self._secret, self.max_age)
        response.set_cookie(
            self.cookie_name,
            token,
            max_age=int(self.max_age.total_seconds()),
            httponly=True,
            secure=self.secure,
            samesite="lax",
        )

    def clear(self, response: Response) -> None:
        response.delete_cookie(
            self.cookie_name,
            httponly=True,
            secure=self.secure,
            samesite="lax",
        )

    def writes_cookie(self, response: Response) -> bool:
        """True if the handler already set or cleared the session cookie on this response."""
        prefix = f"{self.cookie_name}="
        for key, value in response.raw_headers:
            if key.lower() == b"set-cookie" and value.decode("latin-1").startswith(prefix):
                return True
        return False
