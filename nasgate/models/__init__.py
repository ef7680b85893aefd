"""SQLAlchemy ORM models."""

from nasgate.models.base import Base
from nasgate.models.login_session import LoginSession
from nasgate.models.setting import Setting
from nasgate.models.user import Role, User

__all__ = ["Base", "LoginSession", "Role", "Setting", "User"]
