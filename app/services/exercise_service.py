from app.errors import NotFoundError, ValidationError
from app.repositories import exercise_repository
from app.services.common import parse_date, parse_float, parse_int, require_owner


def _entry_fields(user_id: int, entry_data: dict, *, partial: bool) -> dict:
    fields = {}

    if "exercise_id" in entry_data or not partial:
        exercise_id = parse_int(entry_data.get("exercise_id"))
        exercise = exercise_repository.get_exercise_by_id(exercise_id) if exercise_id is not None else None
        if exercise is None or exercise["user_id"] not in (None, user_id):
            raise ValidationError("A valid exercise_id is required.")
        fields["exercise_id"] = exercise_id

    if "entry_date" in entry_data or not partial:
        fields["entry_date"] = parse_date(entry_data.get("entry_date"), "entry_date")

    if "duration_minutes" in entry_data or not partial:
        duration = parse_float(entry_data.get("duration_minutes", 0))
        if duration is None or duration < 0:
            raise ValidationError("duration_minutes must be a non-negative number.")
        fields["duration_minutes"] = duration

    if "calories_burned" in entry_data:
        raw = entry_data["calories_burned"]
        calories = parse_float(raw)
        if raw not in (None, "") and (calories is None or calories < 0):
            raise ValidationError("calories_burned must be a non-negative number.")
        fields["calories_burned"] = calories

    if "notes" in entry_data:
        fields["notes"] = (entry_data.get("notes") or "").strip() or None
    return fields


def get_exercises(authenticated_user_id: int) -> list[dict]:
    return exercise_repository.get_exercises(authenticated_user_id)


def create_exercise(authenticated_user_id: int, exercise_data: dict) -> dict:
    name = (exercise_data.get("name") or "").strip()
    if not name:
        raise ValidationError("Exercise name is required.")
    calories_per_hour = parse_float(exercise_data.get("calories_per_hour"))
    if calories_per_hour is not None and calories_per_hour < 0:
        raise ValidationError("calories_per_hour must be a non-negative number.")
    return exercise_repository.create_exercise(
        {
            "user_id": authenticated_user_id,
            "name": name[:120],
            "category": (exercise_data.get("category") or "").strip()[:40] or None,
            "calories_per_hour": calories_per_hour,
        }
    )


def get_exercise_entries_by_date(authenticated_user_id: int, target_user_id: int, entry_date) -> list[dict]:
    return exercise_repository.get_exercise_entries_by_date(target_user_id, parse_date(entry_date))


def create_exercise_entry(authenticated_user_id: int, entry_data: dict) -> dict:
    fields = _entry_fields(authenticated_user_id, entry_data, partial=False)
    if fields.get("calories_burned") is None:
        exercise = exercise_repository.get_exercise_by_id(fields["exercise_id"])
        per_hour = exercise.get("calories_per_hour") if exercise else None
        if per_hour:
            fields["calories_burned"] = round(per_hour * fields["duration_minutes"] / 60, 1)
    fields["user_id"] = authenticated_user_id
    return exercise_repository.create_exercise_entry(fields)


def update_exercise_entry(authenticated_user_id: int, entry_id: int, update_data: dict) -> dict:
    owner_id = exercise_repository.get_exercise_entry_owner_id(entry_id)
    require_owner(owner_id, authenticated_user_id, entity="Exercise entry", action="update")
    updated = exercise_repository.update_exercise_entry(
        entry_id, authenticated_user_id, _entry_fields(authenticated_user_id, update_data, partial=True)
    )
    if not updated:
        raise NotFoundError("Exercise entry not found or not authorized to update.")
    return updated


def delete_exercise_entry(authenticated_user_id: int, entry_id: int) -> dict:
    owner_id = exercise_repository.get_exercise_entry_owner_id(entry_id)
    require_owner(owner_id, authenticated_user_id, entity="Exercise entry", action="delete")
    if not exercise_repository.delete_exercise_entry(entry_id, authenticated_user_id):
        raise NotFoundError("Exercise entry not found.")
    return {"message": "Exercise entry deleted successfully."}
