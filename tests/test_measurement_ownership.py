import unittest
from unittest import mock

from app import create_app
from app.errors import ForbiddenError, NotFoundError
from app.services import exercise_service, meal_service, measurement_service, water_container_service

OWNER_ID = 1
OTHER_ID = 2


class OwnershipGateTestCase(unittest.TestCase):
    """Mutations on rows owned by someone else must never reach the repository."""

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

        repo_patch = mock.patch.object(measurement_service, "measurement_repository")
        self.repo = repo_patch.start()
        self.addCleanup(repo_patch.stop)

    def tearDown(self):
        self.ctx.pop()

    def test_check_in_update_by_other_user_is_forbidden(self):
        self.repo.get_check_in_measurement_owner_id.return_value = OWNER_ID

        with self.assertRaises(ForbiddenError) as raised:
            measurement_service.update_check_in_measurements(OTHER_ID, 5, "2024-01-15", {"weight": 80})

        self.assertEqual(
            raised.exception.message,
            "Forbidden: You do not have permission to update this check-in measurement.",
        )
        self.repo.update_check_in_measurements.assert_not_called()

    def test_check_in_delete_of_missing_row_is_not_found(self):
        self.repo.get_check_in_measurement_owner_id.return_value = None

        with self.assertRaises(NotFoundError):
            measurement_service.delete_check_in_measurements(OWNER_ID, 99)
        self.repo.delete_check_in_measurements.assert_not_called()

    def test_owner_can_delete_check_in(self):
        self.repo.get_check_in_measurement_owner_id.return_value = OWNER_ID
        self.repo.delete_check_in_measurements.return_value = True

        result = measurement_service.delete_check_in_measurements(OWNER_ID, 5)

        self.repo.delete_check_in_measurements.assert_called_once_with(5, OWNER_ID)
        self.assertIn("deleted", result["message"])

    def test_owner_delete_that_loses_a_race_is_not_found(self):
        self.repo.get_check_in_measurement_owner_id.return_value = OWNER_ID
        self.repo.delete_check_in_measurements.return_value = False

        with self.assertRaises(NotFoundError):
            measurement_service.delete_check_in_measurements(OWNER_ID, 5)

    def test_water_entry_is_gated_for_read_update_and_delete(self):
        self.repo.get_water_intake_entry_owner_id.return_value = OWNER_ID

        with self.assertRaises(ForbiddenError):
            measurement_service.get_water_intake_entry_by_id(OTHER_ID, 4)
        with self.assertRaises(ForbiddenError):
            measurement_service.update_water_intake(OTHER_ID, 4, {"water_ml": 500})
        with self.assertRaises(ForbiddenError):
            measurement_service.delete_water_intake(OTHER_ID, 4)

        self.repo.get_water_intake_entry_by_id.assert_not_called()
        self.repo.update_water_intake.assert_not_called()
        self.repo.delete_water_intake.assert_not_called()

    def test_custom_category_mutations_are_gated(self):
        self.repo.get_custom_category_owner_id.return_value = OWNER_ID

        with self.assertRaises(ForbiddenError):
            measurement_service.update_custom_category(OTHER_ID, 8, {"name": "Mood"})
        with self.assertRaises(ForbiddenError):
            measurement_service.delete_custom_category(OTHER_ID, 8)

        self.repo.update_custom_category.assert_not_called()
        self.repo.delete_custom_category.assert_not_called()

    def test_logging_to_someone_elses_category_is_forbidden(self):
        self.repo.get_custom_category_owner_id.return_value = OWNER_ID

        with self.assertRaises(ForbiddenError) as raised:
            measurement_service.upsert_custom_measurement_entry(
                OTHER_ID,
                {"category_id": 8, "value": 3, "entry_date": "2024-01-15"},
            )

        self.assertIn("log to this custom category", raised.exception.message)
        self.repo.upsert_custom_measurement.assert_not_called()

    def test_custom_entry_delete_is_gated(self):
        self.repo.get_custom_measurement_owner_id.return_value = None

        with self.assertRaises(NotFoundError):
            measurement_service.delete_custom_measurement_entry(OWNER_ID, 12)
        self.repo.delete_custom_measurement.assert_not_called()

    def test_denial_is_logged(self):
        self.repo.get_check_in_measurement_owner_id.return_value = OWNER_ID

        with self.assertLogs(self.app.logger, level="WARNING") as logs:
            with self.assertRaises(ForbiddenError):
                measurement_service.delete_check_in_measurements(OTHER_ID, 5)

        self.assertIn("user_id=2", logs.output[0])

    def test_meal_exercise_and_container_mutations_are_gated(self):
        with mock.patch.object(meal_service, "meal_repository") as meals, mock.patch.object(
            exercise_service, "exercise_repository"
        ) as exercises, mock.patch.object(water_container_service, "water_container_repository") as containers:
            meals.get_meal_owner_id.return_value = OWNER_ID
            exercises.get_exercise_entry_owner_id.return_value = OWNER_ID
            containers.get_water_container_owner_id.return_value = OWNER_ID

            with self.assertRaises(ForbiddenError):
                meal_service.delete_meal(OTHER_ID, 1)
            with self.assertRaises(ForbiddenError):
                meal_service.update_meal(OTHER_ID, 1, {"calories": 10})
            with self.assertRaises(ForbiddenError):
                exercise_service.delete_exercise_entry(OTHER_ID, 1)
            with self.assertRaises(ForbiddenError):
                water_container_service.set_primary_water_container(OTHER_ID, 1)

            meals.delete_meal.assert_not_called()
            meals.update_meal.assert_not_called()
            exercises.delete_exercise_entry.assert_not_called()
            containers.set_primary_water_container.assert_not_called()


if __name__ == "__main__":
    unittest.main()
