from datetime import date, datetime, timezone

from flask import current_app

from app.errors import ForbiddenError, NotFoundError, ValidationError


def require_owner(owner_id: int | None, user_id: int, *, entity: str, action: str) -> None:
    """Ownership gate shared by every mutating service call.

    ``entity`` is the human label used in error messages, e.g. "Check-in measurement".
    """
    if owner_id is None:
        raise NotFoundError(f"{entity} not found.")
    if owner_id != user_id:
        current_app.logger.warning(
            "Denied %s of %s owned by user_id=%s to user_id=%s",
            action,
            entity.lower(),
            owner_id,
            user_id,
        )
        raise ForbiddenError(f"Forbidden: You do not have permission to {action} this {entity.lower()}.")


def parse_date(value, field_name: str = "date") -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str) and value.strip():
        text = value.strip()
        # A plain date, or a full ISO timestamp reduced to its UTC date.
        try:
            if len(text) == 10:
                return date.fromisoformat(text)
            return parse_timestamp(text).date()
        except ValueError:
            pass
    raise ValidationError(f"Invalid {field_name}. Use YYYY-MM-DD.")


def parse_optional_date(value, field_name: str = "date") -> date | None:
    if value in (None, ""):
        return None
    return parse_date(value, field_name)


def parse_timestamp(raw_value: str) -> datetime:
    """Parse an ISO-8601 timestamp, normalising aware values to naive UTC."""
    text = raw_value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is not None:
        parsed = parsed.astimezone(timezone.utc).replace(tzinfo=None)
    return parsed


def parse_int(value):
    """Integer parse that accepts integral floats ("12", 12.0) and rejects everything else."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        text = value.strip()
        try:
            return int(text)
        except ValueError:
            try:
                number = float(text)
            except ValueError:
                return None
            return int(number) if number.is_integer() else None
    return None


def parse_float(value):
    if isinstance(value, bool) or value in (None, ""):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if number != number or number in (float("inf"), float("-inf")):
        return None
    return number
