"""Core app configuration, database, security and logging."""

from nasgate.core.config import Settings, get_settings
from nasgate.core.database import get_db

__all__ = ["Settings", "get_settings", "get_db"]
