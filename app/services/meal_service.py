
from app.errors import NotFoundError, ValidationError
from app.models import utcnow
from app.repositories import meal_repository
from app.services.common import parse_date, parse_float, parse_timestamp, require_owner

MEAL_TYPES = ("breakfast", "lunch", "dinner", "snacks")
NUTRIENT_FIELDS = ("protein_g", "carbs_g", "fat_g", "sugar_g", "sodium_mg")


def normalize_text(value, max_len: int | None = None):
    if value is None:
        return None
    text = " ".join(str(value).split())
    if not text:
        return None
    return text[:max_len] if max_len else text


def _meal_fields(meal_data: dict, *, partial: bool) -> dict:
    fields = {}

    if "eaten_at" in meal_data or not partial:
        raw = meal_data.get("eaten_at")
        if raw:
            try:
                fields["eaten_at"] = parse_timestamp(str(raw))
            except ValueError as exc:
                raise ValidationError("Invalid eaten_at timestamp.") from exc
        elif partial:
            raise ValidationError("eaten_at cannot be empty.")
        else:
            fields["eaten_at"] = utcnow()

    if "meal_type" in meal_data or not partial:
        meal_type = (meal_data.get("meal_type") or "snacks").strip().lower()
        if meal_type not in MEAL_TYPES:
            raise ValidationError(f"meal_type must be one of: {', '.join(MEAL_TYPES)}.")
        fields["meal_type"] = meal_type

    if "description" in meal_data:
        fields["description"] = normalize_text(meal_data.get("description"))
    if "unit" in meal_data:
        fields["unit"] = normalize_text(meal_data.get("unit"), 32)

    if "calories" in meal_data:
        calories = parse_float(meal_data.get("calories"))
        if meal_data.get("calories") not in (None, "") and (calories is None or calories < 0):
            raise ValidationError("calories must be a non-negative number.")
        fields["calories"] = int(round(calories)) if calories is not None else None

    for field in ("quantity",) + NUTRIENT_FIELDS:
        if field in meal_data:
            number = parse_float(meal_data.get(field))
            if meal_data.get(field) not in (None, "") and (number is None or number < 0):
                raise ValidationError(f"{field} must be a non-negative number.")
            fields[field] = number

    if not partial and not fields.get("description") and fields.get("calories") is None:
        raise ValidationError("Meal entry is empty. Add a description or calories.")
    return fields


def create_meal(authenticated_user_id: int, meal_data: dict) -> dict:
    fields = _meal_fields(meal_data, partial=False)
    fields["user_id"] = authenticated_user_id
    return meal_repository.create_meal(fields)


def get_meals_by_date(authenticated_user_id: int, target_user_id: int, target_day) -> list[dict]:
    return meal_repository.get_meals_by_date(target_user_id, parse_date(target_day, "day"))


def get_meal(authenticated_user_id: int, meal_id: int) -> dict:
    owner_id = meal_repository.get_meal_owner_id(meal_id)
    require_owner(owner_id, authenticated_user_id, entity="Meal", action="view")
    meal = meal_repository.get_meal_by_id(meal_id)
    if not meal:
        raise NotFoundError("Meal not found.")
    return meal


def update_meal(authenticated_user_id: int, meal_id: int, update_data: dict) -> dict:
    owner_id = meal_repository.get_meal_owner_id(meal_id)
    require_owner(owner_id, authenticated_user_id, entity="Meal", action="update")
    updated = meal_repository.update_meal(meal_id, authenticated_user_id, _meal_fields(update_data, partial=True))
    if not updated:
        raise NotFoundError("Meal not found or not authorized to update.")
    return updated


def delete_meal(authenticated_user_id: int, meal_id: int) -> dict:
    owner_id = meal_repository.get_meal_owner_id(meal_id)
    require_owner(owner_id, authenticated_user_id, entity="Meal", action="delete")
    if not meal_repository.delete_meal(meal_id, authenticated_user_id):
        raise NotFoundError("Meal not found.")
    return {"message": "Meal deleted successfully."}


def sum_meal_nutrient(day_meals: list[dict], field_name: str) -> float:
    total = 0.0
    for meal in day_meals:
        value = meal.get(field_name)
        if value is not None:
            total += float(value)
    return round(total, 1)


def build_nutrition_summary(selected_day, day_meals: list[dict]) -> dict:
    by_meal_type = {meal_type: 0 for meal_type in MEAL_TYPES}
    for meal in day_meals:
        by_meal_type[meal.get("meal_type") or "snacks"] += int(meal.get("calories") or 0)

    totals = {"calories": int(sum_meal_nutrient(day_meals, "calories"))}
    for field in NUTRIENT_FIELDS:
        totals[field] = sum_meal_nutrient(day_meals, field)

    return {
        "day": selected_day.isoformat(),
        "meal_count": len(day_meals),
        "totals": totals,
        "calories_by_meal_type": by_meal_type,
    }


def get_daily_nutrition_summary(authenticated_user_id: int, target_user_id: int, target_day) -> dict:
    selected_day = parse_date(target_day, "day")
    day_meals = meal_repository.get_meals_by_date(target_user_id, selected_day)
    return build_nutrition_summary(selected_day, day_meals)
