"""HTTP tests for first-run setup and the setup gate."""

import shutil
import tempfile
import unittest
from pathlib import Path
from unittest.mock import patch

from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.exc import OperationalError

from nasgate import __version__
from nasgate.main import create_app
from nasgate.services.users import deactivate_user, get_user_by_username
from tests.support import AppTestCase, fast_bcrypt, make_settings


class TestFreshInstall(AppTestCase):
    def test_pages_redirect_to_setup(self) -> None:
        for path in ("/", "/login", "/admin"):
            with self.subTest(path=path):
                response = self.client.get(path, follow_redirects=False)
                self.assertEqual(response.status_code, 302)
                self.assertEqual(response.headers["location"], "/setup")

    def test_api_answers_requires_setup(self) -> None:
        response = self.client.get("/api/browse")
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertFalse(body["success"])
        self.assertTrue(body["requiresSetup"])
        self.assertEqual(body["redirect"], "/setup")

    def test_login_is_closed_until_setup(self) -> None:
        response = self.client.post("/api/auth/login", json={"username": "admin", "password": "x"})
        self.assertTrue(response.json()["requiresSetup"])

    def test_setup_page_translations_and_assets_are_reachable(self) -> None:
        self.assertEqual(self.client.get("/setup").status_code, 200)
        self.assertIn("text/html", self.client.get("/setup").headers["content-type"])
        self.assertEqual(self.client.get("/api/translations").status_code, 200)
        self.assertEqual(self.client.get("/assets/app.css").status_code, 200)

    def test_missing_fields(self) -> None:
        for body in ({"username": "admin"}, {"password": "x"}, {"username": "   ", "password": "x"}):
            with self.subTest(body=body):
                response = self.client.post("/api/setup", json=body)
                self.assertEqual(response.status_code, 400)
                self.assertEqual(response.json()["message"], "Username and password are required")

class TestGateOrder(AppTestCase):
    settings_overrides = {"API_RATE_MAX": 1}

    def test_setup_gate_runs_before_rate_limiting(self) -> None:
        for _ in range(3):
            self.assertTrue(self.client.get("/api/browse").json()["requiresSetup"])

    def test_allowed_setup_paths_are_still_rate_limited(self) -> None:
        self.assertEqual(self.client.get("/api/translations").status_code, 200)
        response = self.client.get("/api/translations")
        self.assertEqual(response.status_code, 429)
        self.assertIn("retry-after", response.headers)


class TestSetupFlow(AppTestCase):
    def test_end_to_end(self) -> None:
        response = self.client.get("/", follow_redirects=False)
        self.assertEqual(response.headers["location"], "/setup")

        response = self.client.post("/api/setup", json={"username": "admin", "password": "x"})
        self.assertEqual(response.status_code, 200)
        body = response.json()
        self.assertTrue(body["success"])
        self.assertEqual(body["message"], "Setup completed successfully!")
        self.assertEqual(body["user"]["username"], "admin")
        self.assertEqual(body["user"]["role"], "admin")

        response = self.client.get("/setup", follow_redirects=False)
        self.assertEqual(response.status_code, 302)
        self.assertEqual(response.headers["location"], "/")

        response = self.client.get("/", follow_redirects=False)
        self.assertEqual(response.headers["location"], "/login")

    def test_second_setup_is_rejected(self) -> None:
        self.complete_setup()
        response = self.client.post("/api/setup", json={"username": "intruder", "password": "y"})
        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.json(), {"success": False, "message": "Setup already completed"})
        self.client.post("/api/auth/login", json={"username": "intruder", "password": "y"})
        self.assertFalse(self.client.get("/api/auth/status").json()["authenticated"])

    def test_admin_can_sign_in_after_setup(self) -> None:
        self.complete_setup()
        self.login("admin", "x")
        status = self.client.get("/api/auth/status").json()
        self.assertTrue(status["authenticated"])
        self.assertEqual(status["user"]["role"], "admin")

    def test_health(self) -> None:
        self.complete_setup()
        response = self.client.get("/api/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(
            response.json(),
            {
                "status": "ok",
                "version": __version__,
                "environment": "dev",
                "database": "connected",
                "setup": "operational",
                "shareRoot": "available",
            },
        )
        self.assertEqual(response.headers["x-content-type-options"], "nosniff")
        self.assertEqual(response.headers["x-frame-options"], "DENY")

    def test_health_degraded_without_share_root(self) -> None:
        self.complete_setup()
        shutil.rmtree(self.share)
        body = self.client.get("/api/health").json()
        self.assertEqual(body["status"], "degraded")
        self.assertEqual(body["shareRoot"], "unavailable")
        self.assertEqual(body["database"], "connected")

    def test_health_degraded_without_store(self) -> None:
        self.complete_setup()
        failure = OperationalError("SELECT", {}, Exception("gone"))
        with patch("nasgate.api.health.read_setup_state", side_effect=failure):
            body = self.client.get("/api/health").json()
        self.assertEqual(body["status"], "degraded")
        self.assertEqual(body["database"], "disconnected")
        self.assertIsNone(body["setup"])


class TestRepeatedSetup(AppTestCase):
    settings_overrides = {"API_RATE_MAX": 2}

    def test_setup_stays_closed_past_the_api_budget(self) -> None:
        self.complete_setup()
        for attempt in range(6):
            response = self.client.post("/api/setup", json={"username": f"intruder{attempt}", "password": "y"})
            self.assertEqual(response.status_code, 403, f"attempt {attempt + 1}")
            self.assertEqual(response.json()["message"], "Setup already completed")


class TestSetupLatch(unittest.TestCase):
    """A running server keeps setup closed; a restarted one re-reads the store."""

    def setUp(self) -> None:
        patcher = fast_bcrypt()
        patcher.start()
        self.addCleanup(patcher.stop)
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        base = Path(tmp.name)
        self.settings = make_settings(base, DATABASE_URL=f"sqlite:///{base / 'nasgate.db'}")

    def start(self) -> tuple[FastAPI, TestClient]:
        app = create_app(self.settings)
        client = TestClient(app)
        client.__enter__()
        self.addCleanup(client.__exit__, None, None, None)
        return app, client

    def test_removing_the_only_admin_reopens_setup_after_restart(self) -> None:
        app, client = self.start()
        self.assertEqual(client.post("/api/setup", json={"username": "admin", "password": "x"}).status_code, 200)
        with app.state.session_factory() as db:
            deactivate_user(db, get_user_by_username(db, "admin"))

        response = client.post("/api/setup", json={"username": "admin2", "password": "x"})
        self.assertEqual(response.status_code, 403)
        response = client.post("/api/auth/login", json={"username": "admin", "password": "x"})
        self.assertEqual(response.status_code, 401)

        _, restarted = self.start()
        self.assertEqual(restarted.get("/setup").status_code, 200)
        response = restarted.post("/api/setup", json={"username": "admin2", "password": "x"})
        self.assertEqual(response.status_code, 200)


class TestErrorRendering(AppTestCase):
    def setUp(self) -> None:
        super().setUp()
        self.complete_setup()

    def test_wrong_method_on_api_path(self) -> None:
        response = self.client.delete("/api/auth/status")
        self.assertEqual(response.status_code, 405)
        self.assertEqual(response.json(), {"success": False, "message": "Method not allowed"})
        self.assertIn("GET", response.headers["allow"])

    def test_wrong_method_on_page_path_is_translated_text(self) -> None:
        response = self.client.post("/login", headers={"accept-language": "es"})
        self.assertEqual(response.status_code, 405)
        self.assertEqual(response.text, "Método no permitido")
        self.assertIn("text/plain", response.headers["content-type"])

    def test_unknown_api_path(self) -> None:
        response = self.client.get("/api/nothing-here")
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json(), {"success": False, "message": "Not found"})


if __name__ == "__main__":
    unittest.main()
