"""Shared helpers for tests: a throwaway share tree, in-memory stores and an app bound to them."""

import tempfile
import unittest
from pathlib import Path
from typing import Any
from unittest.mock import patch

from fastapi.testclient import TestClient
from sqlalchemy.orm import Session

from nasgate.core.config import Settings
from nasgate.core.database import build_engine, build_session_factory
from nasgate.main import create_app
from nasgate.models import Base, Role
from nasgate.services.users import create_user

TEST_SECRET = "test-session-secret-0123456789abcdef"


def fast_bcrypt():
    """Patch bcrypt down to its minimum cost."""
    return patch("nasgate.core.security.BCRYPT_ROUNDS", 4)


def make_settings(base: Path, **overrides: Any) -> Settings:
    share = base / "share"
    share.mkdir(exist_ok=True)
    values: dict[str, Any] = {
        "DATABASE_URL": "sqlite://",
        "SHARE_ROOT": str(share),
        "INSTALL_DIR": str(share / "nasgate"),
        "LOG_DIR": str(base / "logs"),
        "LOG_LEVEL": "WARNING",
        "SESSION_SECRET": TEST_SECRET,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


class StoreTestCase(unittest.TestCase):
    """Fresh in-memory database with the schema created, one Session per test."""

    def setUp(self) -> None:
        patcher = fast_bcrypt()
        patcher.start()
        self.addCleanup(patcher.stop)
        self.engine = build_engine("sqlite://")
        Base.metadata.create_all(bind=self.engine)
        self.addCleanup(self.engine.dispose)
        self.session_factory = build_session_factory(self.engine)
        self.db: Session = self.session_factory()
        self.addCleanup(self.db.close)


class AppTestCase(unittest.TestCase):
    """
    Application over a temporary share:

        share/docs/readme.txt   ("hello")
        share/docs/sub/
        share/photo.jpg
        share/nasgate/secret.env   (install dir, always hidden)
    """

    settings_overrides: dict[str, Any] = {}

    def setUp(self) -> None:
        patcher = fast_bcrypt()
        patcher.start()
        self.addCleanup(patcher.stop)

        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.base = Path(tmp.name)
        self.settings = make_settings(self.base, **self.settings_overrides)
        self.share = Path(self.settings.SHARE_ROOT)
        (self.share / "docs" / "sub").mkdir(parents=True)
        (self.share / "docs" / "readme.txt").write_text("hello")
        (self.share / "photo.jpg").write_bytes(b"\xff\xd8\xff\xe0" + b"\x00" * 60)
        (self.share / "nasgate").mkdir()
        (self.share / "nasgate" / "secret.env").write_text("SESSION_SECRET=do-not-serve")

        self.app = create_app(self.settings)
        self.client = TestClient(self.app)
        self.client.__enter__()
        self.addCleanup(self.client.__exit__, None, None, None)

    def complete_setup(self, username: str = "admin", password: str = "x") -> None:
        response = self.client.post("/api/setup", json={"username": username, "password": password})
        self.assertEqual(response.status_code, 200, response.text)

    def add_user(self, username: str, password: str, role: Role = Role.USER) -> int:
        with self.app.state.session_factory() as db:
            return create_user(db, username, password, role=role).id

    def login(self, username: str, password: str) -> None:
        response = self.client.post("/api/auth/login", json={"username": username, "password": password})
        self.assertEqual(response.status_code, 200, response.text)

    def setup_and_login_user(self) -> None:
        """Operational system with an admin, signed in as a plain user 'alice'."""
        self.complete_setup()
        self.add_user("alice", "alice-pw")
        self.login("alice", "alice-pw")
