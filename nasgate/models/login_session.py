"""ORM model for server-side login sessions."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, func

from nasgate.models.base import Base


class LoginSession(Base):
    """
    One signed-in browser. The cookie carries session_id; the cookie is only
    honoured while this row exists, has not expired and its user is active.

    Logout deletes the row; deactivating an account deletes all of its rows.
    """

    __tablename__ = "sessions"

    session_id = Column(String(128), primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    expires_at = Column(DateTime(timezone=True), nullable=False, index=True)
