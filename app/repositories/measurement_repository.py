from datetime import date, datetime

from sqlalchemy import and_
from sqlalchemy.exc import IntegrityError

from app import db
from app.errors import ValidationError
from app.models import CheckInMeasurement, CustomCategory, CustomMeasurement, WaterIntake

CHECK_IN_FIELDS = ("weight", "neck", "waist", "hips", "steps")
DUPLICATE_DATE_MESSAGE = "An entry already exists for that date."
DUPLICATE_CATEGORY_MESSAGE = "A custom category with that name already exists."
CUSTOM_CATEGORY_FIELDS = ("name", "measurement_type", "frequency")
CUSTOM_ENTRY_SORT_FIELDS = {"value", "entry_date", "entry_hour", "entry_timestamp", "created_at"}
CUSTOM_ENTRY_FILTER_FIELDS = {"value", "entry_date", "entry_hour", "category_id"}
FILTER_OPERATORS = {
    "eq": lambda column, value: column == value,
    "neq": lambda column, value: column != value,
    "gt": lambda column, value: column > value,
    "gte": lambda column, value: column >= value,
    "lt": lambda column, value: column < value,
    "lte": lambda column, value: column <= value,
}


def _iso(value):
    return value.isoformat() if isinstance(value, (date, datetime)) else value


def _commit_unique(conflict_message: str) -> None:
    try:
        db.session.commit()
    except IntegrityError as exc:
        db.session.rollback()
        raise ValidationError(conflict_message) from exc


def _water_intake_to_payload(record: WaterIntake) -> dict:
    return {
        "id": record.id,
        "user_id": record.user_id,
        "entry_date": _iso(record.entry_date),
        "water_ml": record.water_ml,
        "updated_at": _iso(record.updated_at),
    }


def _check_in_to_payload(record: CheckInMeasurement) -> dict:
    payload = {
        "id": record.id,
        "user_id": record.user_id,
        "entry_date": _iso(record.entry_date),
        "updated_at": _iso(record.updated_at),
    }
    for field in CHECK_IN_FIELDS:
        payload[field] = getattr(record, field)
    return payload


def _category_to_payload(category: CustomCategory) -> dict:
    return {
        "id": category.id,
        "user_id": category.user_id,
        "name": category.name,
        "measurement_type": category.measurement_type,
        "frequency": category.frequency,
    }


def _custom_measurement_to_payload(entry: CustomMeasurement) -> dict:
    return {
        "id": entry.id,
        "user_id": entry.user_id,
        "category_id": entry.category_id,
        "category_name": entry.category.name if entry.category else None,
        "value": entry.value,
        "entry_date": _iso(entry.entry_date),
        "entry_hour": entry.entry_hour,
        "entry_timestamp": _iso(entry.entry_timestamp),
        "notes": entry.notes,
    }


# ---- water intake ----


def get_water_intake_by_date(user_id: int, entry_date: date) -> dict | None:
    record = WaterIntake.query.filter_by(user_id=user_id, entry_date=entry_date).first()
    return _water_intake_to_payload(record) if record else None


def upsert_water_data(user_id: int, water_ml: float, entry_date: date) -> dict:
    record = WaterIntake.query.filter_by(user_id=user_id, entry_date=entry_date).first()
    if record is None:
        record = WaterIntake(user_id=user_id, entry_date=entry_date)
    record.water_ml = water_ml
    db.session.add(record)
    _commit_unique(DUPLICATE_DATE_MESSAGE)
    return _water_intake_to_payload(record)


def get_water_intake_entry_owner_id(entry_id: int) -> int | None:
    return db.session.query(WaterIntake.user_id).filter(WaterIntake.id == entry_id).scalar()


def get_water_intake_entry_by_id(entry_id: int) -> dict | None:
    record = db.session.get(WaterIntake, entry_id)
    return _water_intake_to_payload(record) if record else None


def update_water_intake(entry_id: int, user_id: int, update_data: dict) -> dict | None:
    record = WaterIntake.query.filter_by(id=entry_id, user_id=user_id).first()
    if record is None:
        return None
    if "water_ml" in update_data:
        record.water_ml = update_data["water_ml"]
    if "entry_date" in update_data:
        record.entry_date = update_data["entry_date"]
    db.session.add(record)
    _commit_unique(DUPLICATE_DATE_MESSAGE)
    return _water_intake_to_payload(record)


def delete_water_intake(entry_id: int, user_id: int) -> bool:
    deleted = WaterIntake.query.filter_by(id=entry_id, user_id=user_id).delete()
    db.session.commit()
    return deleted > 0


# ---- check-in measurements ----


def upsert_step_data(user_id: int, steps: int, entry_date: date) -> dict:
    return upsert_check_in_measurements(user_id, entry_date, {"steps": steps})


def upsert_check_in_measurements(user_id: int, entry_date: date, measurements: dict) -> dict:
    record = CheckInMeasurement.query.filter_by(user_id=user_id, entry_date=entry_date).first()
    if record is None:
        record = CheckInMeasurement(user_id=user_id, entry_date=entry_date)
    for field in CHECK_IN_FIELDS:
        if field in measurements:
            setattr(record, field, measurements[field])
    db.session.add(record)
    _commit_unique(DUPLICATE_DATE_MESSAGE)
    return _check_in_to_payload(record)


def get_check_in_measurements_by_date(user_id: int, entry_date: date) -> dict | None:
    record = CheckInMeasurement.query.filter_by(user_id=user_id, entry_date=entry_date).first()
    return _check_in_to_payload(record) if record else None


def get_check_in_measurement_owner_id(measurement_id: int) -> int | None:
    return (
        db.session.query(CheckInMeasurement.user_id)
        .filter(CheckInMeasurement.id == measurement_id)
        .scalar()
    )


def update_check_in_measurements(
    measurement_id: int,
    user_id: int,
    entry_date: date | None,
    update_data: dict,
) -> dict | None:
    record = CheckInMeasurement.query.filter_by(id=measurement_id, user_id=user_id).first()
    if record is None:
        return None
    if entry_date is not None:
        record.entry_date = entry_date
    for field in CHECK_IN_FIELDS:
        if field in update_data:
            setattr(record, field, update_data[field])
    db.session.add(record)
    _commit_unique(DUPLICATE_DATE_MESSAGE)
    return _check_in_to_payload(record)


def delete_check_in_measurements(measurement_id: int, user_id: int) -> bool:
    deleted = CheckInMeasurement.query.filter_by(id=measurement_id, user_id=user_id).delete()
    db.session.commit()
    return deleted > 0


def get_check_in_measurements_by_date_range(user_id: int, start_date: date, end_date: date) -> list[dict]:
    records = (
        CheckInMeasurement.query.filter(
            CheckInMeasurement.user_id == user_id,
            CheckInMeasurement.entry_date >= start_date,
            CheckInMeasurement.entry_date <= end_date,
        )
        .order_by(CheckInMeasurement.entry_date.asc())
        .all()
    )
    return [_check_in_to_payload(record) for record in records]


# ---- custom categories ----


def get_custom_categories(user_id: int) -> list[dict]:
    categories = CustomCategory.query.filter_by(user_id=user_id).order_by(CustomCategory.name.asc()).all()
    return [_category_to_payload(category) for category in categories]


def get_custom_category_by_id(category_id: int) -> dict | None:
    category = db.session.get(CustomCategory, category_id)
    return _category_to_payload(category) if category else None


def create_custom_category(category_data: dict) -> dict:
    category = CustomCategory(user_id=category_data["user_id"])
    for field in CUSTOM_CATEGORY_FIELDS:
        if category_data.get(field) is not None:
            setattr(category, field, category_data[field])
    db.session.add(category)
    _commit_unique(DUPLICATE_CATEGORY_MESSAGE)
    return _category_to_payload(category)


def get_custom_category_owner_id(category_id: int) -> int | None:
    return db.session.query(CustomCategory.user_id).filter(CustomCategory.id == category_id).scalar()


def update_custom_category(category_id: int, user_id: int, update_data: dict) -> dict | None:
    category = CustomCategory.query.filter_by(id=category_id, user_id=user_id).first()
    if category is None:
        return None
    for field in CUSTOM_CATEGORY_FIELDS:
        if update_data.get(field) is not None:
            setattr(category, field, update_data[field])
    db.session.add(category)
    _commit_unique(DUPLICATE_CATEGORY_MESSAGE)
    return _category_to_payload(category)


def delete_custom_category(category_id: int, user_id: int) -> bool:
    category = CustomCategory.query.filter_by(id=category_id, user_id=user_id).first()
    if category is None:
        return False
    db.session.delete(category)
    db.session.commit()
    return True


# ---- custom measurement entries ----


def get_custom_measurement_entries(
    user_id: int,
    limit: int | None = None,
    order_by: tuple[str, str] | None = None,
    filters: list[tuple[str, str, object]] | None = None,
) -> list[dict]:
    """Return a user's custom measurements.

    ``order_by`` is ``(field, "asc"|"desc")`` and each filter is
    ``(field, operator, value)``; both are validated by the service layer and
    checked again against the whitelists here.
    """
    query = CustomMeasurement.query.filter(CustomMeasurement.user_id == user_id)

    for field, operator, value in filters or []:
        if field not in CUSTOM_ENTRY_FILTER_FIELDS or operator not in FILTER_OPERATORS:
            raise ValueError(f"Unsupported filter: {field}.{operator}")
        query = query.filter(FILTER_OPERATORS[operator](getattr(CustomMeasurement, field), value))

    if order_by:
        field, direction = order_by
        if field not in CUSTOM_ENTRY_SORT_FIELDS:
            raise ValueError(f"Unsupported sort field: {field}")
        column = getattr(CustomMeasurement, field)
        query = query.order_by(column.desc() if direction == "desc" else column.asc())
    else:
        query = query.order_by(CustomMeasurement.entry_timestamp.desc())

    if limit:
        query = query.limit(limit)
    return [_custom_measurement_to_payload(entry) for entry in query.all()]


def get_custom_measurement_entries_by_date(user_id: int, entry_date: date) -> list[dict]:
    entries = (
        CustomMeasurement.query.filter_by(user_id=user_id, entry_date=entry_date)
        .order_by(CustomMeasurement.entry_timestamp.asc())
        .all()
    )
    return [_custom_measurement_to_payload(entry) for entry in entries]


def get_custom_measurements_by_date_range(
    user_id: int,
    category_id: int,
    start_date: date,
    end_date: date,
) -> list[dict]:
    entries = (
        CustomMeasurement.query.filter(
            CustomMeasurement.user_id == user_id,
            CustomMeasurement.category_id == category_id,
            CustomMeasurement.entry_date >= start_date,
            CustomMeasurement.entry_date <= end_date,
        )
        .order_by(CustomMeasurement.entry_date.asc(), CustomMeasurement.entry_timestamp.asc())
        .all()
    )
    return [_custom_measurement_to_payload(entry) for entry in entries]


def upsert_custom_measurement(
    user_id: int,
    category_id: int,
    value: float,
    entry_date: date,
    entry_hour: int | None,
    entry_timestamp: datetime,
    notes: str | None = None,
    frequency: str = "Daily",
) -> dict:
    existing = None
    if frequency in ("Daily", "Hourly"):
        conditions = [
            CustomMeasurement.user_id == user_id,
            CustomMeasurement.category_id == category_id,
            CustomMeasurement.entry_date == entry_date,
        ]
        if frequency == "Hourly":
            conditions.append(CustomMeasurement.entry_hour == entry_hour)
        existing = CustomMeasurement.query.filter(and_(*conditions)).first()

    entry = existing or CustomMeasurement(user_id=user_id, category_id=category_id, entry_date=entry_date)
    entry.value = value
    entry.entry_hour = entry_hour
    entry.entry_timestamp = entry_timestamp
    entry.notes = notes
    db.session.add(entry)
    db.session.commit()
    return _custom_measurement_to_payload(entry)


def get_custom_measurement_owner_id(entry_id: int) -> int | None:
    return db.session.query(CustomMeasurement.user_id).filter(CustomMeasurement.id == entry_id).scalar()


def delete_custom_measurement(entry_id: int, user_id: int) -> bool:
    deleted = CustomMeasurement.query.filter_by(id=entry_id, user_id=user_id).delete()
    db.session.commit()
    return deleted > 0
