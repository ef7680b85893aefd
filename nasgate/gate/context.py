"""Immutable per-request values passed between gate stages."""

from dataclasses import dataclass, replace

from nasgate.core.sessions import SessionData
from nasgate.models.user import Role, User


@dataclass(frozen=True)
class Identity:
    id: int
    username: str
    role: Role
    active: bool
    email: str | None = None

    @classmethod
    def from_user(cls, user: User) -> "Identity":
        return cls(
            id=user.id,
            username=user.username,
            role=Role(user.role),
            active=bool(user.is_active),
            email=user.email,
        )

    @property
    def is_admin(self) -> bool:
        return self.role is Role.ADMIN


@dataclass(frozen=True)
class RequestContext:
    """
    What the gates know about a request: its session, source address and, once an
    admin check has passed, the resolved identity. Stages derive new contexts
    rather than mutating this one.
    """

    session: SessionData
    client_ip: str
    path: str
    identity: Identity | None = None

    @property
    def actor(self) -> str | None:
        if self.identity is not None:
            return self.identity.username
        return self.session.username

    def with_identity(self, identity: Identity) -> "RequestContext":
        return replace(self, identity=identity)
