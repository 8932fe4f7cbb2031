"""Measurement services: health-data ingestion, water intake, check-ins and custom measurements.

Every function takes the authenticated user id first. Mutations on owned rows
go through :func:`app.services.common.require_owner` before the repository is
touched.
"""
import json
from datetime import date, datetime, timezone

from flask import current_app
from sqlalchemy.exc import SQLAlchemyError

from app import db
from app.errors import HealthDataBatchError, NotFoundError, ServiceError, ValidationError
from app.models import utcnow
from app.repositories import exercise_repository, measurement_repository, water_container_repository
from app.services.common import (
    parse_date,
    parse_float,
    parse_int,
    parse_optional_date,
    parse_timestamp,
    require_owner,
)

DEFAULT_CONTAINER_VOLUME_ML = 2000
DEFAULT_CONTAINER_SERVINGS = 8
VOLUME_UNIT_TO_ML = {
    "ml": 1.0,
    "l": 1000.0,
    "oz": 29.5735,
    "cup": 240.0,
}
# Upper bound of the Integer columns the readings are stored in.
MAX_INTEGER_VALUE = 2**31 - 1
CUSTOM_CATEGORY_FREQUENCIES = {"Daily", "Hourly", "All", "Unlimited"}
FILTER_OPERATORS = {"eq", "neq", "gt", "gte", "lt", "lte"}
CUSTOM_ENTRY_FILTER_FIELDS = {"value", "entry_date", "entry_hour", "category_id"}
CUSTOM_ENTRY_SORT_FIELDS = {"value", "entry_date", "entry_hour", "entry_timestamp", "created_at"}


def _is_missing(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _parse_entry_date(raw_value) -> date:
    if isinstance(raw_value, datetime):
        if raw_value.tzinfo is not None:
            raw_value = raw_value.astimezone(timezone.utc)
        return raw_value.date()
    if isinstance(raw_value, date):
        return raw_value

    text = str(raw_value).strip()
    try:
        if len(text) == 10:
            return date.fromisoformat(text)
        return parse_timestamp(text).date()
    except ValueError as exc:
        raise ValueError(f"Invalid date received: '{raw_value}'.") from exc


# ---- health data ingestion ----


def process_health_data(health_data: list[dict], user_id: int) -> dict:
    """Validate and store a batch of externally supplied health readings.

    Each entry is ``{"value", "type", "unit", "date"}``. Supported types are
    ``step``, ``water`` and ``Active Calories``. Failures are collected per
    entry; if any entry failed a :class:`HealthDataBatchError` is raised with
    both the successful results and the errors.
    """
    processed = []
    errors = []

    for entry in health_data:
        if not isinstance(entry, dict):
            errors.append({"error": "Each health data entry must be an object.", "entry": entry})
            continue

        value = entry.get("value")
        data_type = entry.get("type")
        raw_date = entry.get("date")

        if _is_missing(value) or _is_missing(data_type) or _is_missing(raw_date):
            errors.append(
                {"error": "Missing required fields: value, type, date in one of the entries", "entry": entry}
            )
            continue

        try:
            entry_date = _parse_entry_date(raw_date)
        except ValueError as exc:
            current_app.logger.error("Date parsing error for health data entry: %s", exc)
            errors.append(
                {"error": f"Invalid date format for entry: {json.dumps(entry, default=str)}. Error: {exc}", "entry": entry}
            )
            continue

        try:
            if data_type == "step":
                steps = parse_int(value)
                if steps is None or not 0 <= steps <= MAX_INTEGER_VALUE:
                    errors.append({"error": "Invalid value for step. Must be a non-negative integer.", "entry": entry})
                    continue
                result = measurement_repository.upsert_step_data(user_id, steps, entry_date)
            elif data_type == "water":
                water_ml = parse_int(value)
                if water_ml is None or not 0 <= water_ml <= MAX_INTEGER_VALUE:
                    errors.append({"error": "Invalid value for water. Must be a non-negative integer.", "entry": entry})
                    continue
                result = measurement_repository.upsert_water_data(user_id, water_ml, entry_date)
            elif data_type == "Active Calories":
                calories = parse_float(value)
                if calories is None or calories < 0:
                    errors.append(
                        {"error": "Invalid value for active_calories. Must be a non-negative number.", "entry": entry}
                    )
                    continue
                exercise_id = exercise_repository.get_or_create_active_calories_exercise(user_id)
                result = exercise_repository.upsert_exercise_entry_data(user_id, exercise_id, calories, entry_date)
            else:
                errors.append({"error": f"Unsupported health data type: {data_type}", "entry": entry})
                continue
        except (SQLAlchemyError, ServiceError) as exc:
            db.session.rollback()
            current_app.logger.error("Error processing health data entry %s: %s", entry, exc)
            errors.append({"error": f"Failed to process entry: {exc}", "entry": entry})
            continue

        processed.append({"type": data_type, "status": "success", "data": result})

    current_app.logger.info(
        "Processed health data for user_id=%s: %s succeeded, %s failed",
        user_id,
        len(processed),
        len(errors),
    )
    if errors:
        raise HealthDataBatchError(
            "Some health data entries could not be processed.",
            processed=processed,
            errors=errors,
        )
    return {"message": "All health data successfully processed.", "processed": processed}


# ---- water intake ----


def get_water_intake(authenticated_user_id: int, target_user_id: int, entry_date) -> dict:
    record = measurement_repository.get_water_intake_by_date(target_user_id, parse_date(entry_date))
    return record or {"water_ml": 0}


def _amount_per_drink_ml(authenticated_user_id: int, container_id) -> float:
    default_amount = DEFAULT_CONTAINER_VOLUME_ML / DEFAULT_CONTAINER_SERVINGS
    if not container_id:
        return default_amount

    container = water_container_repository.get_water_container_by_id(container_id)
    if not container or not container.get("servings_per_container"):
        current_app.logger.warning(
            "Container with ID %s not found for user_id=%s. Using default amount per drink.",
            container_id,
            authenticated_user_id,
        )
        return default_amount

    factor = VOLUME_UNIT_TO_ML.get((container.get("unit") or "ml").lower(), 1.0)
    return float(container["volume"]) * factor / float(container["servings_per_container"])


def upsert_water_intake(authenticated_user_id: int, entry_date, change_drinks, container_id=None) -> dict:
    """Add (or remove, with a negative delta) drinks to the day's water total.

    The total never drops below zero no matter how many drinks are removed.
    """
    entry_date = parse_date(entry_date, "entry_date")
    change = parse_float(change_drinks)
    if change is None:
        raise ValidationError("change_drinks must be a number.")

    current_record = measurement_repository.get_water_intake_by_date(authenticated_user_id, entry_date)
    current_water_ml = float(current_record["water_ml"]) if current_record else 0.0

    amount_per_drink = _amount_per_drink_ml(authenticated_user_id, container_id)
    new_total_ml = max(0.0, current_water_ml + change * amount_per_drink)

    return measurement_repository.upsert_water_data(authenticated_user_id, new_total_ml, entry_date)


def get_water_intake_entry_by_id(authenticated_user_id: int, entry_id: int) -> dict:
    owner_id = measurement_repository.get_water_intake_entry_owner_id(entry_id)
    require_owner(owner_id, authenticated_user_id, entity="Water intake entry", action="view")
    entry = measurement_repository.get_water_intake_entry_by_id(entry_id)
    if not entry:
        raise NotFoundError("Water intake entry not found.")
    return entry


def _water_update_fields(update_data: dict) -> dict:
    fields = {}
    if "water_ml" in update_data:
        water_ml = parse_float(update_data["water_ml"])
        if water_ml is None or water_ml < 0:
            raise ValidationError("water_ml must be a non-negative number.")
        fields["water_ml"] = water_ml
    if "entry_date" in update_data:
        fields["entry_date"] = parse_date(update_data["entry_date"], "entry_date")
    return fields


def update_water_intake(authenticated_user_id: int, entry_id: int, update_data: dict) -> dict:
    owner_id = measurement_repository.get_water_intake_entry_owner_id(entry_id)
    require_owner(owner_id, authenticated_user_id, entity="Water intake entry", action="update")
    updated = measurement_repository.update_water_intake(
        entry_id, authenticated_user_id, _water_update_fields(update_data)
    )
    if not updated:
        raise NotFoundError("Water intake entry not found or not authorized to update.")
    return updated


def delete_water_intake(authenticated_user_id: int, entry_id: int) -> dict:
    owner_id = measurement_repository.get_water_intake_entry_owner_id(entry_id)
    require_owner(owner_id, authenticated_user_id, entity="Water intake entry", action="delete")
    if not measurement_repository.delete_water_intake(entry_id, authenticated_user_id):
        raise NotFoundError("Water intake entry not found.")
    return {"message": "Water intake entry deleted successfully."}


# ---- check-in measurements ----


def _check_in_fields(measurements: dict) -> dict:
    fields = {}
    for name in ("weight", "neck", "waist", "hips"):
        if name in measurements:
            raw = measurements[name]
            number = parse_float(raw)
            if raw not in (None, "") and (number is None or number < 0):
                raise ValidationError(f"Invalid value for {name}. Must be a non-negative number.")
            fields[name] = number
    if "steps" in measurements:
        raw = measurements["steps"]
        steps = parse_int(raw)
        if raw not in (None, "") and (steps is None or not 0 <= steps <= MAX_INTEGER_VALUE):
            raise ValidationError("Invalid value for steps. Must be a non-negative integer.")
        fields["steps"] = steps
    return fields


def upsert_check_in_measurements(authenticated_user_id: int, entry_date, measurements: dict) -> dict:
    return measurement_repository.upsert_check_in_measurements(
        authenticated_user_id,
        parse_date(entry_date, "entry_date"),
        _check_in_fields(measurements),
    )


def get_check_in_measurements(authenticated_user_id: int, target_user_id: int, entry_date) -> dict:
    record = measurement_repository.get_check_in_measurements_by_date(target_user_id, parse_date(entry_date))
    return record or {}


def update_check_in_measurements(authenticated_user_id: int, measurement_id: int, entry_date, update_data: dict) -> dict:
    owner_id = measurement_repository.get_check_in_measurement_owner_id(measurement_id)
    require_owner(owner_id, authenticated_user_id, entity="Check-in measurement", action="update")
    updated = measurement_repository.update_check_in_measurements(
        measurement_id,
        authenticated_user_id,
        parse_optional_date(entry_date, "entry_date"),
        _check_in_fields(update_data),
    )
    if not updated:
        raise NotFoundError("Check-in measurement not found or not authorized to update.")
    return updated


def delete_check_in_measurements(authenticated_user_id: int, measurement_id: int) -> dict:
    owner_id = measurement_repository.get_check_in_measurement_owner_id(measurement_id)
    require_owner(owner_id, authenticated_user_id, entity="Check-in measurement", action="delete")
    if not measurement_repository.delete_check_in_measurements(measurement_id, authenticated_user_id):
        raise NotFoundError("Check-in measurement not found.")
    return {"message": "Check-in measurement deleted successfully."}


def get_check_in_measurements_by_date_range(authenticated_user_id: int, user_id: int, start_date, end_date) -> list[dict]:
    start = parse_date(start_date, "start_date")
    end = parse_date(end_date, "end_date")
    if start > end:
        raise ValidationError("start_date must be on or before end_date.")
    return measurement_repository.get_check_in_measurements_by_date_range(user_id, start, end)


# ---- custom categories ----


def _category_fields(category_data: dict, *, partial: bool) -> dict:
    fields = {}
    name = (category_data.get("name") or "").strip()
    if name:
        fields["name"] = name[:120]
    elif not partial:
        raise ValidationError("Category name is required.")

    frequency = category_data.get("frequency")
    if frequency is not None:
        if frequency not in CUSTOM_CATEGORY_FREQUENCIES:
            raise ValidationError(f"Frequency must be one of: {', '.join(sorted(CUSTOM_CATEGORY_FREQUENCIES))}.")
        fields["frequency"] = frequency

    measurement_type = (category_data.get("measurement_type") or "").strip()
    if measurement_type:
        fields["measurement_type"] = measurement_type[:40]
    return fields


def get_custom_categories(authenticated_user_id: int, target_user_id: int | None = None) -> list[dict]:
    return measurement_repository.get_custom_categories(target_user_id or authenticated_user_id)


def create_custom_category(authenticated_user_id: int, category_data: dict) -> dict:
    fields = _category_fields(category_data, partial=False)
    fields["user_id"] = authenticated_user_id
    return measurement_repository.create_custom_category(fields)


def update_custom_category(authenticated_user_id: int, category_id: int, update_data: dict) -> dict:
    owner_id = measurement_repository.get_custom_category_owner_id(category_id)
    require_owner(owner_id, authenticated_user_id, entity="Custom category", action="update")
    updated = measurement_repository.update_custom_category(
        category_id, authenticated_user_id, _category_fields(update_data, partial=True)
    )
    if not updated:
        raise NotFoundError("Custom category not found or not authorized to update.")
    return updated


def delete_custom_category(authenticated_user_id: int, category_id: int) -> dict:
    owner_id = measurement_repository.get_custom_category_owner_id(category_id)
    require_owner(owner_id, authenticated_user_id, entity="Custom category", action="delete")
    if not measurement_repository.delete_custom_category(category_id, authenticated_user_id):
        raise NotFoundError("Custom category not found.")
    return {"message": "Custom category deleted successfully."}


# ---- custom measurement entries ----


def _parse_order_by(order_by: str | None):
    if not order_by:
        return None
    field, _, direction = order_by.partition(".")
    direction = (direction or "asc").lower()
    if field not in CUSTOM_ENTRY_SORT_FIELDS or direction not in ("asc", "desc"):
        raise ValidationError(f"Invalid order_by: {order_by}")
    return field, direction


def _parse_filters(filter_expr: str | None):
    """Parse ``field.op.value`` clauses separated by commas."""
    if not filter_expr:
        return []

    filters = []
    for clause in filter_expr.split(","):
        parts = clause.strip().split(".", 2)
        if len(parts) != 3:
            raise ValidationError(f"Invalid filter: {clause}")
        field, operator, raw_value = parts
        if field not in CUSTOM_ENTRY_FILTER_FIELDS or operator not in FILTER_OPERATORS:
            raise ValidationError(f"Invalid filter: {clause}")

        if field == "entry_date":
            value = parse_date(raw_value, "filter date")
        elif field == "value":
            value = parse_float(raw_value)
        else:
            value = parse_int(raw_value)
        if value is None:
            raise ValidationError(f"Invalid filter value: {clause}")
        filters.append((field, operator, value))
    return filters


def get_custom_measurement_entries(
    authenticated_user_id: int,
    target_user_id: int,
    limit=None,
    order_by: str | None = None,
    filter_expr: str | None = None,
) -> list[dict]:
    parsed_limit = None
    if limit not in (None, ""):
        parsed_limit = parse_int(limit)
        if parsed_limit is None or parsed_limit < 1:
            raise ValidationError("limit must be a positive integer.")
    return measurement_repository.get_custom_measurement_entries(
        target_user_id,
        parsed_limit,
        _parse_order_by(order_by),
        _parse_filters(filter_expr),
    )


def get_custom_measurement_entries_by_date(authenticated_user_id: int, target_user_id: int, entry_date) -> list[dict]:
    return measurement_repository.get_custom_measurement_entries_by_date(target_user_id, parse_date(entry_date))


def get_custom_measurements_by_date_range(
    authenticated_user_id: int,
    user_id: int,
    category_id: int,
    start_date,
    end_date,
) -> list[dict]:
    start = parse_date(start_date, "start_date")
    end = parse_date(end_date, "end_date")
    if start > end:
        raise ValidationError("start_date must be on or before end_date.")
    return measurement_repository.get_custom_measurements_by_date_range(user_id, category_id, start, end)


def upsert_custom_measurement_entry(authenticated_user_id: int, payload: dict) -> dict:
    category_id = parse_int(payload.get("category_id"))
    if category_id is None:
        raise ValidationError("category_id is required.")

    owner_id = measurement_repository.get_custom_category_owner_id(category_id)
    require_owner(owner_id, authenticated_user_id, entity="Custom category", action="log to")
    category = measurement_repository.get_custom_category_by_id(category_id)

    value = parse_float(payload.get("value"))
    if value is None:
        raise ValidationError("Custom measurement value must be a number.")

    entry_date = parse_date(payload.get("entry_date"), "entry_date")
    entry_hour = payload.get("entry_hour")
    if entry_hour not in (None, ""):
        entry_hour = parse_int(entry_hour)
        if entry_hour is None or not 0 <= entry_hour <= 23:
            raise ValidationError("entry_hour must be between 0 and 23.")
    else:
        entry_hour = None

    raw_timestamp = payload.get("entry_timestamp")
    if raw_timestamp:
        try:
            entry_timestamp = parse_timestamp(str(raw_timestamp))
        except ValueError as exc:
            raise ValidationError("Invalid entry_timestamp.") from exc
    else:
        entry_timestamp = utcnow()

    if category["frequency"] == "Hourly" and entry_hour is None:
        entry_hour = entry_timestamp.hour

    return measurement_repository.upsert_custom_measurement(
        authenticated_user_id,
        category_id,
        value,
        entry_date,
        entry_hour,
        entry_timestamp,
        notes=(payload.get("notes") or None),
        frequency=category["frequency"],
    )


def delete_custom_measurement_entry(authenticated_user_id: int, entry_id: int) -> dict:
    owner_id = measurement_repository.get_custom_measurement_owner_id(entry_id)
    require_owner(owner_id, authenticated_user_id, entity="Custom measurement entry", action="delete")
    if not measurement_repository.delete_custom_measurement(entry_id, authenticated_user_id):
        raise NotFoundError("Custom measurement entry not found or not authorized to delete.")
    return {"message": "Custom measurement entry deleted successfully."}
