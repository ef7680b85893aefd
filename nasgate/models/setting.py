"""ORM model for key/value server settings."""

from sqlalchemy import Column, DateTime, ForeignKey, Integer, String, Text, func

from nasgate.models.base import Base


class Setting(Base):
    """One server setting; value is always stored as text (e.g. setup_completed = 'true')."""

    __tablename__ = "settings"

    key = Column(String(50), primary_key=True)
    value = Column(Text, nullable=True)
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now(),
    )
    updated_by = Column(Integer, ForeignKey("users.id"), nullable=True)
