import base64
import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock
from uuid import uuid4

from openai import OpenAIError

from app import create_app, db
from app.errors import UpstreamServiceError, ValidationError
from app.repositories import coach_repository, user_repository
from app.security import decrypt_secret_for_user, encrypt_secret_for_user
from app.services import coach_service

MASTER_KEY = base64.urlsafe_b64encode(os.urandom(32)).decode("ascii")


class CoachTestCase(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.db_file = Path(tempfile.gettempdir()) / f"fitledger-coach-{uuid4().hex}.db"
        cls.app = create_app(
            {
                "TESTING": True,
                "SQLALCHEMY_DATABASE_URI": f"sqlite:///{cls.db_file.as_posix()}",
                "ENCRYPTION_MASTER_KEY": MASTER_KEY,
                "ENCRYPTION_REQUIRED": True,
                "OPENAI_API_KEY": None,
            }
        )

    @classmethod
    def tearDownClass(cls):
        if cls.db_file.exists():
            try:
                cls.db_file.unlink()
            except PermissionError:
                pass

    def setUp(self):
        self.ctx = self.app.app_context()
        self.ctx.push()
        db.drop_all()
        db.create_all()
        self.user = user_repository.create_user("coach@example.com", "x", "Coach User")
        self.other = user_repository.create_user("other@example.com", "x")

    def tearDown(self):
        db.session.remove()
        db.drop_all()
        self.ctx.pop()

    def test_secret_round_trip_is_bound_to_user_and_scope(self):
        blob = encrypt_secret_for_user(self.user["id"], "sk-test-123", scope="ai-service-key")

        self.assertNotIn(b"sk-test-123", blob)
        self.assertEqual(decrypt_secret_for_user(self.user["id"], blob, scope="ai-service-key"), "sk-test-123")
        self.assertIsNone(decrypt_secret_for_user(self.other["id"], blob, scope="ai-service-key"))
        self.assertIsNone(decrypt_secret_for_user(self.user["id"], blob, scope="other-scope"))

    def test_without_key_the_coach_explains_how_to_enable_it(self):
        result = coach_service.send_coach_message(self.user["id"], "How am I doing?")

        self.assertFalse(result["configured"])
        self.assertIn("OPENAI_API_KEY", result["reply"]["content"])
        history = coach_service.get_coach_history(self.user["id"])
        self.assertEqual([item["role"] for item in history], ["user", "assistant"])

    def test_empty_message_is_rejected(self):
        with self.assertRaises(ValidationError):
            coach_service.send_coach_message(self.user["id"], "   ")
        self.assertEqual(coach_service.get_coach_history(self.user["id"]), [])

    @mock.patch("app.services.coach_service.OpenAI")
    def test_reply_uses_stored_user_key(self, openai_cls):
        openai_cls.return_value.responses.create.return_value.output_text = "Drink two more glasses of water."
        setting = coach_service.create_ai_service_setting(
            self.user["id"],
            {"service_name": "openai", "api_key": "sk-user-key", "model_name": "gpt-test"},
        )
        self.assertTrue(setting["has_api_key"])
        self.assertNotIn("api_key", setting)

        result = coach_service.send_coach_message(self.user["id"], "What should I do tonight?")

        openai_cls.assert_called_once_with(api_key="sk-user-key")
        kwargs = openai_cls.return_value.responses.create.call_args.kwargs
        self.assertEqual(kwargs["model"], "gpt-test")
        self.assertEqual(kwargs["input"][0]["role"], "system")
        self.assertIn("Water:", kwargs["input"][0]["content"])
        self.assertEqual(kwargs["input"][-1], {"role": "user", "content": "What should I do tonight?"})
        self.assertTrue(result["configured"])
        self.assertEqual(result["reply"]["content"], "Drink two more glasses of water.")

    @mock.patch("app.services.coach_service.OpenAI")
    def test_provider_failure_is_reported_as_upstream_error(self, openai_cls):
        self.app.config["OPENAI_API_KEY"] = "sk-server-key"
        self.addCleanup(self.app.config.__setitem__, "OPENAI_API_KEY", None)
        openai_cls.return_value.responses.create.side_effect = OpenAIError("boom")

        with self.assertRaises(UpstreamServiceError) as raised:
            coach_service.send_coach_message(self.user["id"], "Hello")

        self.assertEqual(raised.exception.status_code, 502)
        openai_cls.assert_called_once_with(api_key="sk-server-key")
        self.assertEqual(coach_service.get_coach_history(self.user["id"]), [])

    def test_newer_active_setting_replaces_previous(self):
        first = coach_service.create_ai_service_setting(self.user["id"], {"api_key": "sk-one"})
        second = coach_service.create_ai_service_setting(self.user["id"], {"api_key": "sk-two"})

        settings = {item["id"]: item for item in coach_service.get_ai_service_settings(self.user["id"])}
        self.assertFalse(settings[first["id"]]["is_active"])
        self.assertTrue(settings[second["id"]]["is_active"])

        active, encrypted = coach_repository.get_active_ai_service_setting(self.user["id"])
        self.assertEqual(active["id"], second["id"])
        self.assertEqual(decrypt_secret_for_user(self.user["id"], encrypted, scope="ai-service-key"), "sk-two")

    def test_unsupported_service_is_rejected(self):
        with self.assertRaises(ValidationError):
            coach_service.create_ai_service_setting(self.user["id"], {"service_name": "llama", "api_key": "k"})

    def test_history_is_user_scoped_and_clearable(self):
        coach_repository.add_chat_message(self.user["id"], "user", "mine")
        coach_repository.add_chat_message(self.other["id"], "user", "theirs")

        self.assertEqual([m["content"] for m in coach_service.get_coach_history(self.user["id"])], ["mine"])
        self.assertEqual(coach_service.clear_coach_history(self.user["id"])["deleted"], 1)
        self.assertEqual(len(coach_service.get_coach_history(self.other["id"])), 1)


if __name__ == "__main__":
    unittest.main()
