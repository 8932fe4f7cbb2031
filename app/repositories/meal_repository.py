from datetime import date, datetime, time, timedelta

from app import db
from app.models import Meal

MEAL_FIELDS = (
    "eaten_at",
    "meal_type",
    "description",
    "quantity",
    "unit",
    "calories",
    "protein_g",
    "carbs_g",
    "fat_g",
    "sugar_g",
    "sodium_mg",
)


def _meal_to_payload(meal: Meal) -> dict:
    payload = {"id": meal.id, "user_id": meal.user_id}
    for field in MEAL_FIELDS:
        payload[field] = getattr(meal, field)
    payload["eaten_at"] = meal.eaten_at.isoformat() if meal.eaten_at else None
    return payload


def day_bounds(target_day: date):
    start = datetime.combine(target_day, time.min)
    return start, start + timedelta(days=1)


def create_meal(meal_data: dict) -> dict:
    meal = Meal(user_id=meal_data["user_id"])
    for field in MEAL_FIELDS:
        if field in meal_data:
            setattr(meal, field, meal_data[field])
    db.session.add(meal)
    db.session.commit()
    return _meal_to_payload(meal)


def get_meal_by_id(meal_id: int) -> dict | None:
    meal = db.session.get(Meal, meal_id)
    return _meal_to_payload(meal) if meal else None


def get_meals_by_date(user_id: int, target_day: date) -> list[dict]:
    start, end = day_bounds(target_day)
    meals = (
        Meal.query.filter(
            Meal.user_id == user_id,
            Meal.eaten_at >= start,
            Meal.eaten_at < end,
        )
        .order_by(Meal.eaten_at.asc())
        .all()
    )
    return [_meal_to_payload(meal) for meal in meals]


def get_meal_owner_id(meal_id: int) -> int | None:
    return db.session.query(Meal.user_id).filter(Meal.id == meal_id).scalar()


def update_meal(meal_id: int, user_id: int, update_data: dict) -> dict | None:
    meal = Meal.query.filter_by(id=meal_id, user_id=user_id).first()
    if meal is None:
        return None
    for field in MEAL_FIELDS:
        if field in update_data:
            setattr(meal, field, update_data[field])
    db.session.add(meal)
    db.session.commit()
    return _meal_to_payload(meal)


def delete_meal(meal_id: int, user_id: int) -> bool:
    deleted = Meal.query.filter_by(id=meal_id, user_id=user_id).delete()
    db.session.commit()
    return deleted > 0
