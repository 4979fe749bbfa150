# -*- coding: utf-8 -*-

from __future__ import annotations

import shutil
import tempfile
import unittest
from datetime import datetime, timedelta, timezone
from pathlib import Path

from fastapi.testclient import TestClient

from dietplanner.api import create_app
from dietplanner.auth.security import _jwt_encode
from dietplanner.config import settings
from dietplanner.users.errors import StoreUnavailable
from dietplanner.users.service import UserMetricsService

UTC = timezone.utc
NOW = datetime(2026, 10, 19, 12, 0, 0, tzinfo=UTC)


class TestUsersApi(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = Path(tempfile.mkdtemp(prefix="dietplanner-test-"))
        app = create_app(db_path=self._tmp / "users.db", growth_months=3, clock=lambda: NOW)
        self.client = TestClient(app)
        self.client.__enter__()
        self.store = app.state.user_store
        self.app = app

    def tearDown(self) -> None:
        self.client.__exit__(None, None, None)
        shutil.rmtree(self._tmp, ignore_errors=True)

    def test_empty_population(self) -> None:
        self.assertEqual(self.client.get("/users").json(), [])
        self.assertEqual(self.client.get("/users/count").json(), {"count": 0})
        self.assertEqual(self.client.get("/users/new-this-month").json(), {"count": 0})
        self.assertEqual(self.client.get("/users/active-this-week").json(), {"count": 0})
        resp = self.client.get("/users/growth")
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(
            resp.json(),
            {"series": [{"period": "2026-08", "count": 0}, {"period": "2026-09", "count": 0}, {"period": "2026-10", "count": 0}]},
        )

    def test_activity_stats_composite(self) -> None:
        user = self.store.create_user(email="a@example.com", password_hash="x", created_at=datetime(2026, 9, 3, tzinfo=UTC))
        self.store.touch_last_active(user["id"], at=NOW - timedelta(days=1))
        self.store.create_user(email="b@example.com", password_hash="x", created_at=datetime(2026, 10, 1, tzinfo=UTC))

        resp = self.client.get("/users/activity-stats")
        self.assertEqual(resp.status_code, 200)
        payload = resp.json()
        self.assertEqual(payload["total_users"], 2)
        self.assertEqual(payload["new_this_month"], 1)
        self.assertEqual(payload["active_this_week"], 1)
        self.assertEqual(
            payload["growth"]["series"],
            [{"period": "2026-08", "count": 0}, {"period": "2026-09", "count": 1}, {"period": "2026-10", "count": 1}],
        )

    def test_user_listing_hides_credentials(self) -> None:
        self.store.create_user(email="d@example.com", password_hash="secret-hash", role="dietitian", first_name="Dana")
        users = self.client.get("/users").json()
        self.assertEqual(len(users), 1)
        self.assertNotIn("password_hash", users[0])
        self.assertEqual(users[0]["role"], "dietitian")
        self.assertEqual(users[0]["first_name"], "Dana")

    def test_closed_store_returns_503_message(self) -> None:
        self.store.close()
        resp = self.client.get("/users/count")
        self.assertEqual(resp.status_code, 503)
        self.assertIn("closed", resp.json()["message"])

    def test_aggregation_failure_names_sub_query(self) -> None:
        class _BrokenGrowthStore(type(self.store)):
            def created_counts_by_month(self, window, *, timeout=None):
                raise StoreUnavailable("disk I/O error")

        broken = _BrokenGrowthStore(self.store.db_path)
        broken.open()
        self.app.state.metrics_service = UserMetricsService(broken, clock=lambda: NOW)

        resp = self.client.get("/users/activity-stats")
        self.assertEqual(resp.status_code, 500)
        self.assertIn("user_growth", resp.json()["message"])

    def test_health(self) -> None:
        self.assertEqual(self.client.get("/api/health").json(), {"ok": True})


class TestUsersApiFailures(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = Path(tempfile.mkdtemp(prefix="dietplanner-test-"))

    def tearDown(self) -> None:
        shutil.rmtree(self._tmp, ignore_errors=True)

    def test_naive_clock_returns_500_message(self) -> None:
        app = create_app(db_path=self._tmp / "users.db", clock=lambda: datetime(2026, 10, 19))
        with TestClient(app) as client:
            resp = client.get("/users/new-this-month")
            self.assertEqual(resp.status_code, 500)
            self.assertIn("Naive datetime", resp.json()["message"])

            resp = client.get("/users/activity-stats")
            self.assertEqual(resp.status_code, 500)
            self.assertIn("new_users_this_month", resp.json()["message"])

    def test_requests_before_startup_are_unavailable(self) -> None:
        client = TestClient(create_app(db_path=self._tmp / "users.db"))
        resp = client.get("/users/count")
        self.assertEqual(resp.status_code, 503)
        self.assertIn("message", resp.json())
        client.close()


class TestAuthApi(unittest.TestCase):
    def setUp(self) -> None:
        self._tmp = Path(tempfile.mkdtemp(prefix="dietplanner-test-"))
        self.client = TestClient(create_app(db_path=self._tmp / "users.db"))
        self.client.__enter__()

    def tearDown(self) -> None:
        self.client.__exit__(None, None, None)
        shutil.rmtree(self._tmp, ignore_errors=True)

    def _register(self, email: str, role: str = "user", first_name: str | None = None) -> None:
        resp = self.client.post(
            "/api/auth/register",
            json={"email": email, "password": "password123", "role": role, "first_name": first_name},
        )
        self.assertEqual(resp.status_code, 200)

    def test_dietitian_login_greets_by_first_name(self) -> None:
        self._register("diet@example.com", role="dietitian", first_name="Maya")
        resp = self.client.post("/api/auth/dietitian/login", json={"email": "diet@example.com", "password": "password123"})
        self.assertEqual(resp.status_code, 200)
        payload = resp.json()
        self.assertEqual(payload["firstName"], "Maya")
        self.assertEqual(payload["user"]["role"], "dietitian")
        self.assertTrue(payload["token"])

    def test_user_login_greets_by_first_name(self) -> None:
        self._register("ann@example.com", first_name="Ann")
        resp = self.client.post("/api/auth/login", json={"email": "ann@example.com", "password": "password123"})
        self.assertEqual(resp.status_code, 200)
        payload = resp.json()
        self.assertEqual(payload["firstName"], "Ann")
        self.assertEqual(payload["user"]["role"], "user")

    def test_token_with_malformed_expiry_is_unauthorized(self) -> None:
        token = _jwt_encode({"sub": "someone", "exp": "soon"}, settings.jwt_secret)
        anon = TestClient(self.client.app)
        resp = anon.get("/api/auth/me", headers={"authorization": f"Bearer {token}"})
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json(), {"message": "Invalid token"})

    def test_login_is_role_scoped(self) -> None:
        self._register("diet@example.com", role="dietitian")
        resp = self.client.post("/api/auth/login", json={"email": "diet@example.com", "password": "password123"})
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json(), {"message": "Invalid credentials"})

    def test_wrong_password_is_rejected(self) -> None:
        self._register("eater@example.com")
        resp = self.client.post("/api/auth/login", json={"email": "eater@example.com", "password": "nope"})
        self.assertEqual(resp.status_code, 401)

    def test_duplicate_registration(self) -> None:
        self._register("eater@example.com")
        resp = self.client.post("/api/auth/register", json={"email": "eater@example.com", "password": "password123"})
        self.assertEqual(resp.status_code, 400)
        self.assertEqual(resp.json()["message"], "Email already registered")

    def test_login_counts_as_activity(self) -> None:
        self._register("eater@example.com")
        self.assertEqual(self.client.get("/users/active-this-week").json(), {"count": 0})

        resp = self.client.post("/api/auth/login", json={"email": "eater@example.com", "password": "password123"})
        self.assertEqual(resp.status_code, 200)
        self.assertIsNotNone(resp.json()["user"]["last_active_at"])
        self.assertEqual(self.client.get("/users/active-this-week").json(), {"count": 1})

    def test_me_requires_token(self) -> None:
        anon = TestClient(self.client.app)
        resp = anon.get("/api/auth/me")
        self.assertEqual(resp.status_code, 401)
        self.assertEqual(resp.json(), {"message": "Not authenticated"})

    def test_me_with_bearer_token(self) -> None:
        self._register("eater@example.com")
        token = self.client.post(
            "/api/auth/login", json={"email": "eater@example.com", "password": "password123"}
        ).json()["token"]
        anon = TestClient(self.client.app)
        resp = anon.get("/api/auth/me", headers={"authorization": f"Bearer {token}"})
        self.assertEqual(resp.status_code, 200)
        self.assertEqual(resp.json()["email"], "eater@example.com")

    def test_logout_ends_cookie_session(self) -> None:
        self._register("eater@example.com")
        self.client.post("/api/auth/login", json={"email": "eater@example.com", "password": "password123"})
        self.assertEqual(self.client.get("/api/auth/me").status_code, 200)

        resp = self.client.post("/api/auth/logout")
        self.assertEqual(resp.json(), {"status": "ok"})
        self.assertEqual(self.client.get("/api/auth/me").status_code, 401)

    def test_validation_errors_use_message_shape(self) -> None:
        resp = self.client.post("/api/auth/login", json={"email": "x"})
        self.assertEqual(resp.status_code, 422)
        self.assertIn("message", resp.json())


if __name__ == "__main__":
    unittest.main()
