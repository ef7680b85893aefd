"""Server-side login sessions: the rows that make a signed session cookie valid."""

import logging
import secrets
from datetime import datetime, timedelta, timezone

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from nasgate.models.login_session import LoginSession
from nasgate.models.user import User

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


def open_session(db: Session, user_id: int, max_age: timedelta) -> str:
    """Create a session row for a fresh login and return its id."""
    session_id = secrets.token_urlsafe(32)
    db.add(LoginSession(session_id=session_id, user_id=user_id, expires_at=_now() + max_age))
    db.commit()
    return session_id


def is_session_live(db: Session, session_id: str, user_id: int) -> bool:
    """True while the row exists for this user, has not expired and the user is active."""
    stmt = (
        select(LoginSession.session_id)
        .join(User, User.id == LoginSession.user_id)
        .where(
            LoginSession.session_id == session_id,
            LoginSession.user_id == user_id,
            LoginSession.expires_at > _now(),
            User.is_active.is_(True),
        )
    )
    return db.scalar(stmt) is not None


def touch_session(db: Session, session_id: str, max_age: timedelta) -> None:
    """Slide the row's expiry forward along with the cookie."""
    db.execute(
        update(LoginSession)
        .where(LoginSession.session_id == session_id)
        .values(expires_at=_now() + max_age)
        .execution_options(synchronize_session=False)
    )
    db.commit()


def close_session(db: Session, session_id: str) -> None:
    db.execute(
        delete(LoginSession)
        .where(LoginSession.session_id == session_id)
        .execution_options(synchronize_session=False)
    )
    db.commit()


def revoke_user_sessions(db: Session, user_id: int, commit: bool = True) -> int:
    """Delete every session of one user. Returns how many were removed."""
    result = db.execute(
        delete(LoginSession)
        .where(LoginSession.user_id == user_id)
        .execution_options(synchronize_session=False)
    )
    if commit:
        db.commit()
    if result.rowcount:
        logger.info("Revoked %s session(s) of user id=%s", result.rowcount, user_id)
    return result.rowcount


def purge_expired_sessions(db: Session) -> int:
    result = db.execute(
        delete(LoginSession)
        .where(LoginSession.expires_at <= _now())
        .execution_options(synchronize_session=False)
    )
    db.commit()
    return result.rowcount
