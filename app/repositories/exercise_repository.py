from datetime import date

from sqlalchemy import or_

from app import db
from app.models import Exercise, ExerciseEntry

ACTIVE_CALORIES_EXERCISE_NAME = "Active Calories"
EXERCISE_ENTRY_FIELDS = ("exercise_id", "entry_date", "duration_minutes", "calories_burned", "notes")


def _exercise_to_payload(exercise: Exercise) -> dict:
    return {
        "id": exercise.id,
        "user_id": exercise.user_id,
        "name": exercise.name,
        "category": exercise.category,
        "calories_per_hour": exercise.calories_per_hour,
        "is_custom": exercise.is_custom,
    }


def _entry_to_payload(entry: ExerciseEntry) -> dict:
    return {
        "id": entry.id,
        "user_id": entry.user_id,
        "exercise_id": entry.exercise_id,
        "exercise_name": entry.exercise.name if entry.exercise else None,
        "entry_date": entry.entry_date.isoformat(),
        "duration_minutes": entry.duration_minutes,
        "calories_burned": entry.calories_burned,
        "notes": entry.notes,
    }


def get_or_create_active_calories_exercise(user_id: int) -> int:
    exercise = Exercise.query.filter_by(user_id=user_id, name=ACTIVE_CALORIES_EXERCISE_NAME).first()
    if exercise:
        return exercise.id

    exercise = Exercise(
        user_id=user_id,
        name=ACTIVE_CALORIES_EXERCISE_NAME,
        category="health_data",
        calories_per_hour=0,
        is_custom=True,
    )
    db.session.add(exercise)
    db.session.commit()
    return exercise.id


def upsert_exercise_entry_data(user_id: int, exercise_id: int, calories_burned: float, entry_date: date) -> dict:
    entry = ExerciseEntry.query.filter_by(
        user_id=user_id,
        exercise_id=exercise_id,
        entry_date=entry_date,
    ).first()
    if entry is None:
        entry = ExerciseEntry(
            user_id=user_id,
            exercise_id=exercise_id,
            entry_date=entry_date,
            duration_minutes=0,
        )
    entry.calories_burned = calories_burned
    db.session.add(entry)
    db.session.commit()
    return _entry_to_payload(entry)


def get_exercises(user_id: int) -> list[dict]:
    exercises = (
        Exercise.query.filter(or_(Exercise.user_id.is_(None), Exercise.user_id == user_id))
        .order_by(Exercise.name.asc())
        .all()
    )
    return [_exercise_to_payload(exercise) for exercise in exercises]


def get_exercise_by_id(exercise_id: int) -> dict | None:
    exercise = db.session.get(Exercise, exercise_id)
    return _exercise_to_payload(exercise) if exercise else None


def create_exercise(exercise_data: dict) -> dict:
    exercise = Exercise(
        user_id=exercise_data["user_id"],
        name=exercise_data["name"],
        category=exercise_data.get("category") or "general",
        calories_per_hour=exercise_data.get("calories_per_hour"),
        is_custom=True,
    )
    db.session.add(exercise)
    db.session.commit()
    return _exercise_to_payload(exercise)


def get_exercise_entries_by_date(user_id: int, entry_date: date) -> list[dict]:
    entries = (
        ExerciseEntry.query.filter_by(user_id=user_id, entry_date=entry_date)
        .order_by(ExerciseEntry.created_at.asc())
        .all()
    )
    return [_entry_to_payload(entry) for entry in entries]


def create_exercise_entry(entry_data: dict) -> dict:
    entry = ExerciseEntry(user_id=entry_data["user_id"])
    for field in EXERCISE_ENTRY_FIELDS:
        if field in entry_data:
            setattr(entry, field, entry_data[field])
    db.session.add(entry)
    db.session.commit()
    return _entry_to_payload(entry)


def get_exercise_entry_owner_id(entry_id: int) -> int | None:
    return db.session.query(ExerciseEntry.user_id).filter(ExerciseEntry.id == entry_id).scalar()


def update_exercise_entry(entry_id: int, user_id: int, update_data: dict) -> dict | None:
    entry = ExerciseEntry.query.filter_by(id=entry_id, user_id=user_id).first()
    if entry is None:
        return None
    for field in EXERCISE_ENTRY_FIELDS:
        if field in update_data:
            setattr(entry, field, update_data[field])
    db.session.add(entry)
    db.session.commit()
    return _entry_to_payload(entry)


def delete_exercise_entry(entry_id: int, user_id: int) -> bool:
    deleted = ExerciseEntry.query.filter_by(id=entry_id, user_id=user_id).delete()
    db.session.commit()
    return deleted > 0
