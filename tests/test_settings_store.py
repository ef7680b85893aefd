"""Tests for nasgate.services.settings_store: defaults, setup snapshot and the one-time setup transaction."""

import tempfile
import threading
import unittest
from pathlib import Path
from unittest.mock import patch

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from nasgate.core.database import build_engine, build_session_factory
from nasgate.models import Base, Role, User
from nasgate.services import settings_store
from nasgate.services.settings_store import (
    DEFAULT_SETTINGS,
    SETUP_COMPLETED_KEY,
    SetupAlreadyCompletedError,
    complete_setup,
    get_all_settings,
    get_setting,
    read_setup_state,
    seed_default_settings,
    set_setting,
)
from nasgate.services.users import UsernameTakenError, create_user, deactivate_user
from tests.support import StoreTestCase, fast_bcrypt


class TestDefaults(StoreTestCase):
    def test_seed_inserts_defaults(self) -> None:
        seed_default_settings(self.db)
        self.assertEqual(get_all_settings(self.db), DEFAULT_SETTINGS)

    def test_seed_keeps_existing_values(self) -> None:
        set_setting(self.db, "server_name", "Home NAS")
        seed_default_settings(self.db)
        seed_default_settings(self.db)
        self.assertEqual(get_setting(self.db, "server_name"), "Home NAS")
        self.assertEqual(len(get_all_settings(self.db)), len(DEFAULT_SETTINGS))

    def test_set_setting_upserts_with_attribution(self) -> None:
        admin = create_user(self.db, "admin", "x", role=Role.ADMIN)
        set_setting(self.db, "default_language", "es", updated_by=admin.id)
        set_setting(self.db, "default_language", "en", updated_by=admin.id)
        self.assertEqual(get_setting(self.db, "default_language"), "en")
        self.assertIsNone(get_setting(self.db, "missing"))


class TestSetupSnapshot(StoreTestCase):
    def test_fresh_store(self) -> None:
        snapshot = read_setup_state(self.db)
        self.assertFalse(snapshot.completed_flag)
        self.assertFalse(snapshot.has_active_admin)
        self.assertFalse(snapshot.is_operational)

    def test_seeded_flag_is_false(self) -> None:
        seed_default_settings(self.db)
        self.assertFalse(read_setup_state(self.db).completed_flag)

    def test_admin_without_flag_is_not_operational(self) -> None:
        create_user(self.db, "admin", "x", role=Role.ADMIN)
        snapshot = read_setup_state(self.db)
        self.assertTrue(snapshot.has_active_admin)
        self.assertFalse(snapshot.is_operational)

    def test_flag_without_admin_is_not_operational(self) -> None:
        create_user(self.db, "alice", "x", role=Role.USER)
        set_setting(self.db, SETUP_COMPLETED_KEY, "true")
        snapshot = read_setup_state(self.db)
        self.assertTrue(snapshot.completed_flag)
        self.assertFalse(snapshot.has_active_admin)


class TestCompleteSetup(StoreTestCase):
    def test_creates_admin_and_sets_flag(self) -> None:
        seed_default_settings(self.db)
        admin = complete_setup(self.db, "admin", "x", email="admin@example.com")
        self.assertEqual(admin.role, Role.ADMIN)
        self.assertTrue(admin.is_active)
        self.assertEqual(get_setting(self.db, SETUP_COMPLETED_KEY), "true")
        self.assertTrue(read_setup_state(self.db).is_operational)

    def test_second_attempt_rejected(self) -> None:
        complete_setup(self.db, "admin", "x")
        with self.assertRaises(SetupAlreadyCompletedError):
            complete_setup(self.db, "other", "y")
        self.assertEqual(self.db.scalar(select(func.count()).select_from(User)), 1)

    def test_username_taken_leaves_nothing_behind(self) -> None:
        create_user(self.db, "admin", "pw", role=Role.USER)
        with self.assertRaises(UsernameTakenError):
            complete_setup(self.db, "admin", "x")
        snapshot = read_setup_state(self.db)
        self.assertFalse(snapshot.completed_flag)
        self.assertFalse(snapshot.has_active_admin)

    def test_flag_write_failure_rolls_back_admin(self) -> None:
        with patch.object(settings_store, "set_setting", side_effect=SQLAlchemyError("disk full")):
            with self.assertRaises(SQLAlchemyError):
                complete_setup(self.db, "admin", "x")
        self.assertEqual(self.db.scalar(select(func.count()).select_from(User)), 0)
        self.assertFalse(read_setup_state(self.db).has_active_admin)

    def test_setup_reopens_when_the_only_admin_is_deactivated(self) -> None:
        admin = complete_setup(self.db, "admin", "x")
        deactivate_user(self.db, admin)
        self.assertFalse(read_setup_state(self.db).is_operational)
        second = complete_setup(self.db, "admin2", "y")
        self.assertEqual(second.role, Role.ADMIN)
        self.assertTrue(read_setup_state(self.db).is_operational)


class TestConcurrentSetup(unittest.TestCase):
    """Racing setup submissions against a file database: exactly one wins."""

    def test_exactly_one_admin(self) -> None:
        patcher = fast_bcrypt()
        patcher.start()
        self.addCleanup(patcher.stop)
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        engine = build_engine(f"sqlite:///{Path(tmp.name) / 'race.db'}")
        self.addCleanup(engine.dispose)
        Base.metadata.create_all(bind=engine)
        session_factory = build_session_factory(engine)
        with session_factory() as db:
            seed_default_settings(db)

        attempts = 6
        barrier = threading.Barrier(attempts)
        outcomes: list[str] = []
        outcomes_lock = threading.Lock()

        def attempt(n: int) -> None:
            barrier.wait()
            with session_factory() as db:
                try:
                    complete_setup(db, f"admin{n}", "x")
                    result = "created"
                except SetupAlreadyCompletedError:
                    result = "already"
            with outcomes_lock:
                outcomes.append(result)

        threads = [threading.Thread(target=attempt, args=(n,)) for n in range(attempts)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()

        self.assertEqual(outcomes.count("created"), 1)
        self.assertEqual(outcomes.count("already"), attempts - 1)
        with session_factory() as db:
            admins = db.scalar(select(func.count()).select_from(User).where(User.role == Role.ADMIN))
            self.assertEqual(admins, 1)


if __name__ == "__main__":
    unittest.main()
