import tempfile
import unittest
from pathlib import Path
from uuid import uuid4

from app import create_app, db


class DataIsolationTestCase(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.db_file = Path(tempfile.gettempdir()) / f"fitledger-isolation-{uuid4().hex}.db"
        cls.app = create_app(
            {
                "TESTING": True,
                "SQLALCHEMY_DATABASE_URI": f"sqlite:///{cls.db_file.as_posix()}",
                "JWT_SECRET": "test-jwt-secret",
                "ENCRYPTION_REQUIRED": False,
                "ADMIN_EMAIL": "admin@example.com",
                "DISABLE_SIGNUP": False,
            }
        )

        with cls.app.app_context():
            db.drop_all()
            db.create_all()

        client = cls.app.test_client()
        cls.tokens = {}
        cls.user_ids = {}
        for email in ("user1@example.com", "user2@example.com", "admin@example.com"):
            response = client.post("/api/auth/register", json={"email": email, "password": "pass12345"})
            assert response.status_code == 201, response.get_json()
            body = response.get_json()
            cls.tokens[email] = body["token"]
            cls.user_ids[email] = body["user"]["id"]

        user2 = {"Authorization": f"Bearer {cls.tokens['user2@example.com']}"}
        response = client.post(
            "/api/measurements/check-in",
            json={"entry_date": "2026-02-18", "weight": 81.5, "steps": 9000},
            headers=user2,
        )
        cls.user2_check_in_id = response.get_json()["id"]

        response = client.post(
            "/api/meals",
            json={"eaten_at": "2026-02-18T12:30:00", "meal_type": "lunch", "description": "U2_SECRET_MEAL", "calories": 777},
            headers=user2,
        )
        cls.user2_meal_id = response.get_json()["id"]

        response = client.post("/api/measurements/custom-categories", json={"name": "Mood"}, headers=user2)
        cls.user2_category_id = response.get_json()["id"]

        response = client.post(
            "/api/measurements/water-intake",
            json={"entry_date": "2026-02-18", "change_drinks": 2},
            headers=user2,
        )
        cls.user2_water_id = response.get_json()["id"]

    @classmethod
    def tearDownClass(cls):
        with cls.app.app_context():
            db.session.remove()
            db.drop_all()
            db.engine.dispose()
        if cls.db_file.exists():
            try:
                cls.db_file.unlink()
            except PermissionError:
                pass

    def setUp(self):
        self.client = self.app.test_client()

    def auth(self, email="user1@example.com"):
        return {"Authorization": f"Bearer {self.tokens[email]}"}

    def test_health_check_needs_no_token(self):
        response = self.client.get("/api/health")
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()["status"], "ok")

    def test_requests_without_token_are_rejected(self):
        response = self.client.get("/api/measurements/check-in?date=2026-02-18")
        self.assertEqual(response.status_code, 401)
        self.assertFalse(response.get_json()["ok"])

    def test_tampered_token_is_rejected(self):
        response = self.client.get(
            "/api/measurements/check-in?date=2026-02-18",
            headers={"Authorization": "Bearer not-a-real-token"},
        )
        self.assertEqual(response.status_code, 401)

    def test_login_returns_working_token(self):
        response = self.client.post(
            "/api/auth/login",
            json={"email": "USER1@example.com", "password": "pass12345"},
        )
        self.assertEqual(response.status_code, 200)
        token = response.get_json()["token"]

        me = self.client.get("/api/auth/me", headers={"Authorization": f"Bearer {token}"})
        self.assertEqual(me.get_json()["user"]["email"], "user1@example.com")
        self.assertFalse(me.get_json()["is_admin"])

    def test_login_with_wrong_password_fails(self):
        response = self.client.post(
            "/api/auth/login",
            json={"email": "user1@example.com", "password": "wrong-password"},
        )
        self.assertEqual(response.status_code, 401)
        self.assertEqual(response.get_json()["error"], "Invalid email or password.")

    def test_user_cannot_delete_another_users_check_in(self):
        response = self.client.delete(
            f"/api/measurements/check-in/{self.user2_check_in_id}",
            headers=self.auth(),
        )
        self.assertEqual(response.status_code, 403)
        self.assertIn("Forbidden", response.get_json()["error"])

    def test_user_cannot_update_another_users_check_in(self):
        response = self.client.put(
            f"/api/measurements/check-in/{self.user2_check_in_id}",
            json={"weight": 60},
            headers=self.auth(),
        )
        self.assertEqual(response.status_code, 403)

        owner_view = self.client.get(
            "/api/measurements/check-in?date=2026-02-18",
            headers=self.auth("user2@example.com"),
        )
        self.assertEqual(owner_view.get_json()["weight"], 81.5)

    def test_missing_row_is_not_found(self):
        response = self.client.delete("/api/measurements/check-in/999999", headers=self.auth())
        self.assertEqual(response.status_code, 404)

    def test_user_cannot_open_another_users_meal(self):
        response = self.client.get(f"/api/meals/{self.user2_meal_id}", headers=self.auth())
        self.assertEqual(response.status_code, 403)

    def test_user_cannot_touch_another_users_water_entry(self):
        response = self.client.get(f"/api/measurements/water-intake/{self.user2_water_id}", headers=self.auth())
        self.assertEqual(response.status_code, 403)
        response = self.client.delete(f"/api/measurements/water-intake/{self.user2_water_id}", headers=self.auth())
        self.assertEqual(response.status_code, 403)

    def test_user_cannot_log_to_another_users_category(self):
        response = self.client.post(
            "/api/measurements/custom-entries",
            json={"category_id": self.user2_category_id, "value": 5, "entry_date": "2026-02-18"},
            headers=self.auth(),
        )
        self.assertEqual(response.status_code, 403)

    def test_own_reads_do_not_expose_other_users_data(self):
        meals = self.client.get("/api/meals?day=2026-02-18", headers=self.auth()).get_json()
        self.assertEqual(meals, [])
        water = self.client.get("/api/measurements/water-intake?date=2026-02-18", headers=self.auth()).get_json()
        self.assertEqual(water, {"water_ml": 0})
        categories = self.client.get("/api/measurements/custom-categories", headers=self.auth()).get_json()
        self.assertEqual(categories, [])

    def test_reading_another_user_requires_admin(self):
        user2_id = self.user_ids["user2@example.com"]
        response = self.client.get(
            f"/api/measurements/check-in?date=2026-02-18&user_id={user2_id}",
            headers=self.auth(),
        )
        self.assertEqual(response.status_code, 403)

        response = self.client.get(
            f"/api/measurements/check-in?date=2026-02-18&user_id={user2_id}",
            headers=self.auth("admin@example.com"),
        )
        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.get_json()["steps"], 9000)

    def test_health_data_batch_over_http(self):
        response = self.client.post(
            "/api/health-data",
            json=[
                {"value": 4321, "type": "step", "unit": "count", "date": "2026-02-19"},
                {"value": 1, "type": "foo", "unit": "x", "date": "2026-02-19"},
            ],
            headers=self.auth(),
        )
        self.assertEqual(response.status_code, 400)
        body = response.get_json()
        self.assertEqual(len(body["processed"]), 1)
        self.assertEqual(len(body["errors"]), 1)

        check_in = self.client.get("/api/measurements/check-in?date=2026-02-19", headers=self.auth()).get_json()
        self.assertEqual(check_in["steps"], 4321)


if __name__ == "__main__":
    unittest.main()
