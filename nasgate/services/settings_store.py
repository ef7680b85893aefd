"""Settings store, setup-state snapshot and the one-time setup transaction."""

import logging
import threading
from dataclasses import dataclass

from sqlalchemy import and_, exists, select
from sqlalchemy.orm import Session

from nasgate.models.setting import Setting
from nasgate.models.user import Role, User
from nasgate.services.users import create_user

logger = logging.getLogger(__name__)

SETUP_COMPLETED_KEY = "setup_completed"

DEFAULT_SETTINGS: dict[str, str] = {
    "default_language": "en",
    "server_name": "NAS File Server",
    SETUP_COMPLETED_KEY: "false",
    "max_file_size": "104857600",
    "allowed_file_types": "*",
}

# Keys only the setup transaction may write.
READ_ONLY_KEYS = frozenset({SETUP_COMPLETED_KEY})

# Serializes setup attempts in this process; the unique username constraint backs it up.
_setup_lock = threading.Lock()


class SetupAlreadyCompletedError(Exception):
    """Raised when setup is attempted while an active admin and the completion flag both exist."""


@dataclass(frozen=True)
class SetupSnapshot:
    completed_flag: bool
    has_active_admin: bool

    @property
    def is_operational(self) -> bool:
        return self.completed_flag and self.has_active_admin


def seed_default_settings(db: Session) -> None:
    """Insert default settings that are missing; existing values are left alone."""
    existing = set(db.scalars(select(Setting.key)))
    missing = [Setting(key=k, value=v) for k, v in DEFAULT_SETTINGS.items() if k not in existing]
    if missing:
        db.add_all(missing)
        db.commit()
        logger.info("Seeded default settings: %s", ", ".join(s.key for s in missing))


def get_setting(db: Session, key: str) -> str | None:
    return db.scalar(select(Setting.value).where(Setting.key == key))


def set_setting(db: Session, key: str, value: str, updated_by: int | None = None, commit: bool = True) -> None:
    """Upsert one setting with attribution."""
    db.merge(Setting(key=key, value=value, updated_by=updated_by))
    if commit:
        db.commit()
    logger.info("Setting updated: %s (by=%s)", key, updated_by)


def get_all_settings(db: Session) -> dict[str, str | None]:
    return {row.key: row.value for row in db.scalars(select(Setting).order_by(Setting.key))}


def read_setup_state(db: Session) -> SetupSnapshot:
    """Completion flag and active-admin existence, read in one statement."""
    flag = select(Setting.value).where(Setting.key == SETUP_COMPLETED_KEY).scalar_subquery()
    admin = exists().where(and_(User.role == Role.ADMIN, User.is_active.is_(True)))
    row = db.execute(select(flag, admin)).one()
    return SetupSnapshot(completed_flag=row[0] == "true", has_active_admin=bool(row[1]))


def complete_setup(db: Session, username: str, password: str, email: str | None = None) -> User:
    """
    Create the first administrator and mark setup completed, in one transaction.

    Raises SetupAlreadyCompletedError when the system is already operational and
    UsernameTakenError when the username exists. Either the admin and the flag are
    both committed or neither is.
    """
    with _setup_lock:
        if read_setup_state(db).is_operational:
            raise SetupAlreadyCompletedError("Setup already completed")
        try:
            admin = create_user(db, username, password, role=Role.ADMIN, email=email, commit=False)
            set_setting(db, SETUP_COMPLETED_KEY, "true", updated_by=admin.id, commit=False)
            db.commit()
        except Exception:
            db.rollback()
            raise
    logger.info("Initial setup completed by %s (id=%s)", admin.username, admin.id)
    return admin
