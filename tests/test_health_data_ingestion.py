import unittest
from datetime import date
from unittest import mock

from sqlalchemy.exc import OperationalError

from app import create_app
from app.errors import HealthDataBatchError
from app.services import measurement_service

USER_ID = 7


class HealthDataIngestionTestCase(unittest.TestCase):
    @classmethod
    def setUpClass(cls):
        cls.app = create_app(
            {
                "TESTING": True,
                "SQLALCHEMY_DATABASE_URI": "sqlite://",
                "ENCRYPTION_REQUIRED": False,
            }
        )

    def setUp(self):
        self.ctx = self.app.app_context()
        self.ctx.push()

        measurement_patch = mock.patch.object(measurement_service, "measurement_repository")
        exercise_patch = mock.patch.object(measurement_service, "exercise_repository")
        self.measurements = measurement_patch.start()
        self.exercises = exercise_patch.start()
        self.addCleanup(measurement_patch.stop)
        self.addCleanup(exercise_patch.stop)

        self.measurements.upsert_step_data.return_value = {"id": 1, "steps": 5000}
        self.measurements.upsert_water_data.return_value = {"id": 2, "water_ml": 750}
        self.exercises.get_or_create_active_calories_exercise.return_value = 42
        self.exercises.upsert_exercise_entry_data.return_value = {"id": 3, "calories_burned": 310.5}

    def tearDown(self):
        self.ctx.pop()

    def test_step_entry_is_stored_once(self):
        result = measurement_service.process_health_data(
            [{"value": 5000, "type": "step", "unit": "count", "date": "2024-01-15"}],
            USER_ID,
        )

        self.measurements.upsert_step_data.assert_called_once_with(USER_ID, 5000, date(2024, 1, 15))
        self.assertEqual(result["message"], "All health data successfully processed.")
        self.assertEqual(len(result["processed"]), 1)
        self.assertEqual(result["processed"][0]["status"], "success")

    def test_water_entry_accepts_numeric_string(self):
        measurement_service.process_health_data(
            [{"value": "750", "type": "water", "unit": "ml", "date": "2024-01-15"}],
            USER_ID,
        )
        self.measurements.upsert_water_data.assert_called_once_with(USER_ID, 750, date(2024, 1, 15))

    def test_active_calories_resolves_exercise_then_upserts(self):
        measurement_service.process_health_data(
            [{"value": 310.5, "type": "Active Calories", "unit": "kcal", "date": "2024-01-15"}],
            USER_ID,
        )

        self.exercises.get_or_create_active_calories_exercise.assert_called_once_with(USER_ID)
        self.exercises.upsert_exercise_entry_data.assert_called_once_with(USER_ID, 42, 310.5, date(2024, 1, 15))

    def test_partial_batch_reports_success_and_failure(self):
        with self.assertRaises(HealthDataBatchError) as raised:
            measurement_service.process_health_data(
                [
                    {"value": 5000, "type": "step", "unit": "count", "date": "2024-01-15"},
                    {"value": 1, "type": "foo", "unit": "x", "date": "2024-01-15"},
                ],
                USER_ID,
            )

        exc = raised.exception
        self.assertEqual(len(exc.processed), 1)
        self.assertEqual(len(exc.errors), 1)
        self.assertIn("Unsupported health data type: foo", exc.errors[0]["error"])
        self.assertEqual(exc.status_code, 400)
        self.assertEqual(exc.to_dict()["ok"], False)

    def test_unknown_type_touches_no_repository(self):
        with self.assertRaises(HealthDataBatchError):
            measurement_service.process_health_data(
                [{"value": 3, "type": "sleep", "unit": "h", "date": "2024-01-15"}],
                USER_ID,
            )

        self.measurements.upsert_step_data.assert_not_called()
        self.measurements.upsert_water_data.assert_not_called()
        self.exercises.get_or_create_active_calories_exercise.assert_not_called()
        self.exercises.upsert_exercise_entry_data.assert_not_called()

    def test_missing_fields_are_reported(self):
        with self.assertRaises(HealthDataBatchError) as raised:
            measurement_service.process_health_data(
                [
                    {"type": "step", "date": "2024-01-15"},
                    {"value": 10, "type": "  ", "date": "2024-01-15"},
                    {"value": 10, "type": "step"},
                ],
                USER_ID,
            )

        self.assertEqual(len(raised.exception.errors), 3)
        for error in raised.exception.errors:
            self.assertIn("Missing required fields", error["error"])
        self.measurements.upsert_step_data.assert_not_called()

    def test_zero_value_is_not_missing(self):
        measurement_service.process_health_data(
            [{"value": 0, "type": "water", "unit": "ml", "date": "2024-01-15"}],
            USER_ID,
        )
        self.measurements.upsert_water_data.assert_called_once_with(USER_ID, 0, date(2024, 1, 15))

    def test_invalid_date_is_reported(self):
        with self.assertRaises(HealthDataBatchError) as raised:
            measurement_service.process_health_data(
                [{"value": 100, "type": "step", "unit": "count", "date": "15/01/2024"}],
                USER_ID,
            )

        self.assertIn("Invalid date format", raised.exception.errors[0]["error"])
        self.measurements.upsert_step_data.assert_not_called()

    def test_timestamp_dates_are_normalised_to_utc(self):
        measurement_service.process_health_data(
            [{"value": 100, "type": "step", "unit": "count", "date": "2024-01-15T23:30:00-05:00"}],
            USER_ID,
        )
        self.measurements.upsert_step_data.assert_called_once_with(USER_ID, 100, date(2024, 1, 16))

    def test_fractional_steps_are_rejected(self):
        with self.assertRaises(HealthDataBatchError) as raised:
            measurement_service.process_health_data(
                [{"value": "12.7", "type": "step", "unit": "count", "date": "2024-01-15"}],
                USER_ID,
            )

        self.assertIn("Must be a non-negative integer", raised.exception.errors[0]["error"])
        self.measurements.upsert_step_data.assert_not_called()

    def test_out_of_range_counts_fail_only_their_entry(self):
        with self.assertRaises(HealthDataBatchError) as raised:
            measurement_service.process_health_data(
                [
                    {"value": "1e20", "type": "step", "unit": "count", "date": "2024-01-15"},
                    {"value": 2**31, "type": "water", "unit": "ml", "date": "2024-01-15"},
                    {"value": -10, "type": "step", "unit": "count", "date": "2024-01-15"},
                    {"value": 500, "type": "water", "unit": "ml", "date": "2024-01-15"},
                ],
                USER_ID,
            )

        exc = raised.exception
        self.assertEqual(len(exc.errors), 3)
        self.assertIn("Invalid value for step", exc.errors[0]["error"])
        self.assertIn("Invalid value for water", exc.errors[1]["error"])
        self.assertEqual([item["type"] for item in exc.processed], ["water"])
        self.measurements.upsert_step_data.assert_not_called()
        self.measurements.upsert_water_data.assert_called_once_with(USER_ID, 500, date(2024, 1, 15))

    def test_negative_active_calories_are_rejected(self):
        with self.assertRaises(HealthDataBatchError):
            measurement_service.process_health_data(
                [{"value": -5, "type": "Active Calories", "unit": "kcal", "date": "2024-01-15"}],
                USER_ID,
            )
        self.exercises.upsert_exercise_entry_data.assert_not_called()

    def test_repository_failure_is_isolated_to_its_entry(self):
        self.measurements.upsert_water_data.side_effect = OperationalError("UPDATE", {}, Exception("locked"))

        with self.assertRaises(HealthDataBatchError) as raised:
            measurement_service.process_health_data(
                [
                    {"value": 250, "type": "water", "unit": "ml", "date": "2024-01-15"},
                    {"value": 4000, "type": "step", "unit": "count", "date": "2024-01-15"},
                ],
                USER_ID,
            )

        exc = raised.exception
        self.assertEqual([item["type"] for item in exc.processed], ["step"])
        self.assertTrue(exc.errors[0]["error"].startswith("Failed to process entry"))


if __name__ == "__main__":
    unittest.main()
