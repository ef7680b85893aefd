"""User store: account records queried by id or username."""

import logging
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from nasgate.core.security import hash_password, verify_password
from nasgate.models.user import Role, User
from nasgate.services.session_store import revoke_user_sessions

logger = logging.getLogger(__name__)

UPDATABLE_FIELDS = frozenset({"email", "role", "password", "is_active"})


class UserStoreError(Exception):
    """Base for user store failures that callers are expected to handle."""

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class UsernameTakenError(UserStoreError):
    pass


class UserNotFoundError(UserStoreError):
    pass


def create_user(
    db: Session,
    username: str,
    password: str,
    role: Role = Role.USER,
    email: str | None = None,
    created_by: int | None = None,
    commit: bool = True,
) -> User:
    """
    Insert a new active account. Raises UsernameTakenError when the username exists
    (active or not; usernames are never reused).

    With commit=False the row is only flushed so the caller can extend the transaction.
    """
    user = User(
        username=username,
        email=email or None,
        password_hash=hash_password(password),
        role=role,
        is_active=True,
        created_by=created_by,
    )
    db.add(user)
    try:
        db.flush()
    except IntegrityError as e:
        db.rollback()
        raise UsernameTakenError(f"Username '{username}' already exists.") from e
    if commit:
        db.commit()
    logger.info("User created: %s (id=%s, role=%s)", username, user.id, user.role.value)
    return user


def get_user_by_id(db: Session, user_id: int, active_only: bool = True) -> User | None:
    stmt = select(User).where(User.id == user_id)
    if active_only:
        stmt = stmt.where(User.is_active.is_(True))
    return db.scalars(stmt).first()


def get_user_by_username(db: Session, username: str) -> User | None:
    """Active account with this username, if any."""
    return db.scalars(
        select(User).where(User.username == username, User.is_active.is_(True))
    ).first()


def list_users(db: Session) -> list[User]:
    return list(db.scalars(select(User).order_by(User.created_at.desc(), User.id.desc())))


def authenticate(db: Session, username: str, password: str) -> User | None:
    """Return the active account when the password matches, otherwise None."""
    user = get_user_by_username(db, username)
    if user is None:
        return None
    if not verify_password(password, user.password_hash):
        return None
    return user


def update_last_login(db: Session, user: User) -> None:
    user.last_login = datetime.now(timezone.utc)
    db.commit()


def update_user(db: Session, user_id: int, updates: dict[str, Any]) -> User:
    """
    Apply a partial update. Only email, role, password and is_active are writable;
    a password is re-hashed before storage. Deactivating an account ends all of its
    sessions. Raises UserNotFoundError for unknown ids.
    """
    unknown = set(updates) - UPDATABLE_FIELDS
    if unknown:
        raise ValueError(f"Fields cannot be updated: {', '.join(sorted(unknown))}")
    user = get_user_by_id(db, user_id, active_only=False)
    if user is None:
        raise UserNotFoundError(f"User {user_id} not found.")
    for field, value in updates.items():
        if field == "password":
            user.password_hash = hash_password(value)
        elif field == "role":
            user.role = Role(value)
        else:
            setattr(user, field, value)
    if updates.get("is_active") is False:
        revoke_user_sessions(db, user.id, commit=False)
    db.commit()
    logger.info("User updated: id=%s fields=%s", user_id, ",".join(sorted(updates)))
    return user


def deactivate_user(db: Session, user: User) -> None:
    """Soft delete; the account's sessions are ended in the same transaction. Role checks are the caller's job."""
    user.is_active = False
    revoke_user_sessions(db, user.id, commit=False)
    db.commit()
    logger.info("User deactivated: id=%s", user.id)
