from datetime import date
from functools import wraps

from flask import Blueprint, current_app, g, jsonify, request
from sqlalchemy import text

from app import db
from app.errors import AuthenticationError, ForbiddenError, ValidationError
from app.repositories import user_repository
from app.security import decode_access_token
from app.services import (
    auth_service,
    coach_service,
    exercise_service,
    meal_service,
    measurement_service,
    water_container_service,
)
from app.services.common import parse_int

bp = Blueprint("main", __name__)


def json_body() -> dict:
    body = request.get_json(silent=True) if request.is_json else None
    if body is None:
        return {}
    if not isinstance(body, dict):
        raise ValidationError("Request body must be a JSON object.")
    return body


def requested_day(arg_name: str = "date") -> str:
    return request.args.get(arg_name) or date.today().isoformat()


def resolve_target_user_id() -> int:
    """Return the user whose data a read request targets.

    Only the configured admin may read someone else's data.
    """
    raw = request.args.get("user_id")
    if raw in (None, ""):
        return g.user["id"]
    target_id = parse_int(raw)
    if target_id is None:
        raise ValidationError("user_id must be an integer.")
    if target_id != g.user["id"] and not auth_service.is_admin(g.user):
        raise ForbiddenError("Forbidden: You do not have permission to view this user's data.")
    return target_id


def login_required(view):
    @wraps(view)
    def wrapped(*args, **kwargs):
        if g.user is None:
            raise AuthenticationError("Authorization header missing or invalid.")
        return view(*args, **kwargs)

    return wrapped


@bp.before_app_request
def load_authenticated_user():
    g.user = None
    auth_header = request.headers.get("Authorization", "")
    if not auth_header.startswith("Bearer "):
        return

    token = auth_header.split(" ", 1)[1].strip()
    if not token:
        return
    try:
        claims = decode_access_token(token)
    except AuthenticationError as exc:
        current_app.logger.info("Rejected bearer token: %s", exc)
        return
    user_id = parse_int(claims.get("sub"))
    g.user = user_repository.get_user_by_id(user_id) if user_id is not None else None


@bp.get("/api/health")
def health_check():
    try:
        db.session.execute(text("SELECT 1"))
    except Exception:
        current_app.logger.exception("Health check database probe failed")
        return jsonify({"status": "error", "database": "unavailable"}), 503
    return jsonify({"status": "ok", "database": "ok"})


# ---- auth ----


@bp.post("/api/auth/register")
def register():
    body = json_body()
    result = auth_service.register_user(body.get("email"), body.get("password"), body.get("full_name"))
    return jsonify(result), 201


@bp.post("/api/auth/login")
def login():
    body = json_body()
    return jsonify(auth_service.authenticate(body.get("email"), body.get("password")))


@bp.get("/api/auth/me")
@login_required
def me():
    return jsonify({"user": g.user, "is_admin": auth_service.is_admin(g.user)})


# ---- health data ingestion ----


@bp.post("/api/health-data")
@login_required
def health_data_ingest():
    body = request.get_json(silent=True)
    entries = body.get("data") if isinstance(body, dict) else body
    if not isinstance(entries, list) or not entries:
        raise ValidationError("Send a non-empty list of health data entries.")
    return jsonify(measurement_service.process_health_data(entries, g.user["id"]))


# ---- water intake ----


@bp.get("/api/measurements/water-intake")
@login_required
def water_intake_get():
    return jsonify(measurement_service.get_water_intake(g.user["id"], resolve_target_user_id(), requested_day()))


@bp.post("/api/measurements/water-intake")
@login_required
def water_intake_upsert():
    body = json_body()
    result = measurement_service.upsert_water_intake(
        g.user["id"],
        body.get("entry_date") or date.today().isoformat(),
        body.get("change_drinks"),
        body.get("container_id"),
    )
    return jsonify(result)


@bp.get("/api/measurements/water-intake/<int:entry_id>")
@login_required
def water_intake_entry_get(entry_id: int):
    return jsonify(measurement_service.get_water_intake_entry_by_id(g.user["id"], entry_id))


@bp.put("/api/measurements/water-intake/<int:entry_id>")
@login_required
def water_intake_entry_update(entry_id: int):
    return jsonify(measurement_service.update_water_intake(g.user["id"], entry_id, json_body()))


@bp.delete("/api/measurements/water-intake/<int:entry_id>")
@login_required
def water_intake_entry_delete(entry_id: int):
    return jsonify(measurement_service.delete_water_intake(g.user["id"], entry_id))


# ---- check-in measurements ----


@bp.get("/api/measurements/check-in")
@login_required
def check_in_get():
    return jsonify(
        measurement_service.get_check_in_measurements(g.user["id"], resolve_target_user_id(), requested_day())
    )


@bp.post("/api/measurements/check-in")
@login_required
def check_in_upsert():
    body = json_body()
    entry_date = body.pop("entry_date", None) or date.today().isoformat()
    return jsonify(measurement_service.upsert_check_in_measurements(g.user["id"], entry_date, body))


@bp.put("/api/measurements/check-in/<int:measurement_id>")
@login_required
def check_in_update(measurement_id: int):
    body = json_body()
    entry_date = body.pop("entry_date", None)
    return jsonify(
        measurement_service.update_check_in_measurements(g.user["id"], measurement_id, entry_date, body)
    )


@bp.delete("/api/measurements/check-in/<int:measurement_id>")
@login_required
def check_in_delete(measurement_id: int):
    return jsonify(measurement_service.delete_check_in_measurements(g.user["id"], measurement_id))


@bp.get("/api/measurements/check-in/range")
@login_required
def check_in_range():
    result = measurement_service.get_check_in_measurements_by_date_range(
        g.user["id"],
        resolve_target_user_id(),
        request.args.get("start_date"),
        request.args.get("end_date"),
    )
    return jsonify(result)


# ---- custom categories ----


@bp.get("/api/measurements/custom-categories")
@login_required
def custom_categories_list():
    return jsonify(measurement_service.get_custom_categories(g.user["id"], resolve_target_user_id()))


@bp.post("/api/measurements/custom-categories")
@login_required
def custom_category_create():
    return jsonify(measurement_service.create_custom_category(g.user["id"], json_body())), 201


@bp.put("/api/measurements/custom-categories/<int:category_id>")
@login_required
def custom_category_update(category_id: int):
    return jsonify(measurement_service.update_custom_category(g.user["id"], category_id, json_body()))


@bp.delete("/api/measurements/custom-categories/<int:category_id>")
@login_required
def custom_category_delete(category_id: int):
    return jsonify(measurement_service.delete_custom_category(g.user["id"], category_id))


# ---- custom measurement entries ----


@bp.get("/api/measurements/custom-entries")
@login_required
def custom_entries_list():
    result = measurement_service.get_custom_measurement_entries(
        g.user["id"],
        resolve_target_user_id(),
        request.args.get("limit"),
        request.args.get("order_by"),
        request.args.get("filter"),
    )
    return jsonify(result)


@bp.get("/api/measurements/custom-entries/by-date")
@login_required
def custom_entries_by_date():
    return jsonify(
        measurement_service.get_custom_measurement_entries_by_date(
            g.user["id"], resolve_target_user_id(), requested_day()
        )
    )


@bp.get("/api/measurements/custom-entries/range")
@login_required
def custom_entries_range():
    category_id = parse_int(request.args.get("category_id"))
    if category_id is None:
        raise ValidationError("category_id is required.")
    result = measurement_service.get_custom_measurements_by_date_range(
        g.user["id"],
        resolve_target_user_id(),
        category_id,
        request.args.get("start_date"),
        request.args.get("end_date"),
    )
    return jsonify(result)


@bp.post("/api/measurements/custom-entries")
@login_required
def custom_entry_upsert():
    return jsonify(measurement_service.upsert_custom_measurement_entry(g.user["id"], json_body()))


@bp.delete("/api/measurements/custom-entries/<int:entry_id>")
@login_required
def custom_entry_delete(entry_id: int):
    return jsonify(measurement_service.delete_custom_measurement_entry(g.user["id"], entry_id))


# ---- water containers ----


@bp.get("/api/water-containers")
@login_required
def water_containers_list():
    return jsonify(water_container_service.get_water_containers(g.user["id"]))


@bp.get("/api/water-containers/primary")
@login_required
def water_container_primary():
    return jsonify(water_container_service.get_primary_water_container(g.user["id"]))


@bp.post("/api/water-containers")
@login_required
def water_container_create():
    return jsonify(water_container_service.create_water_container(g.user["id"], json_body())), 201


@bp.put("/api/water-containers/<int:container_id>")
@login_required
def water_container_update(container_id: int):
    return jsonify(water_container_service.update_water_container(g.user["id"], container_id, json_body()))


@bp.delete("/api/water-containers/<int:container_id>")
@login_required
def water_container_delete(container_id: int):
    return jsonify(water_container_service.delete_water_container(g.user["id"], container_id))


@bp.post("/api/water-containers/<int:container_id>/set-primary")
@login_required
def water_container_set_primary(container_id: int):
    return jsonify(water_container_service.set_primary_water_container(g.user["id"], container_id))


# ---- exercises ----


@bp.get("/api/exercises")
@login_required
def exercises_list():
    return jsonify(exercise_service.get_exercises(g.user["id"]))


@bp.post("/api/exercises")
@login_required
def exercise_create():
    return jsonify(exercise_service.create_exercise(g.user["id"], json_body())), 201


@bp.get("/api/exercise-entries")
@login_required
def exercise_entries_list():
    return jsonify(
        exercise_service.get_exercise_entries_by_date(g.user["id"], resolve_target_user_id(), requested_day())
    )


@bp.post("/api/exercise-entries")
@login_required
def exercise_entry_create():
    return jsonify(exercise_service.create_exercise_entry(g.user["id"], json_body())), 201


@bp.put("/api/exercise-entries/<int:entry_id>")
@login_required
def exercise_entry_update(entry_id: int):
    return jsonify(exercise_service.update_exercise_entry(g.user["id"], entry_id, json_body()))


@bp.delete("/api/exercise-entries/<int:entry_id>")
@login_required
def exercise_entry_delete(entry_id: int):
    return jsonify(exercise_service.delete_exercise_entry(g.user["id"], entry_id))


# ---- meals ----


@bp.get("/api/meals")
@login_required
def meals_list():
    return jsonify(meal_service.get_meals_by_date(g.user["id"], resolve_target_user_id(), requested_day("day")))


@bp.get("/api/meals/summary")
@login_required
def meals_summary():
    return jsonify(
        meal_service.get_daily_nutrition_summary(g.user["id"], resolve_target_user_id(), requested_day("day"))
    )


@bp.post("/api/meals")
@login_required
def meal_create():
    return jsonify(meal_service.create_meal(g.user["id"], json_body())), 201


@bp.get("/api/meals/<int:meal_id>")
@login_required
def meal_get(meal_id: int):
    return jsonify(meal_service.get_meal(g.user["id"], meal_id))


@bp.put("/api/meals/<int:meal_id>")
@login_required
def meal_update(meal_id: int):
    return jsonify(meal_service.update_meal(g.user["id"], meal_id, json_body()))


@bp.delete("/api/meals/<int:meal_id>")
@login_required
def meal_delete(meal_id: int):
    return jsonify(meal_service.delete_meal(g.user["id"], meal_id))


# ---- coach ----


@bp.get("/api/coach/history")
@login_required
def coach_history():
    return jsonify(coach_service.get_coach_history(g.user["id"]))


@bp.delete("/api/coach/history")
@login_required
def coach_history_clear():
    return jsonify(coach_service.clear_coach_history(g.user["id"]))


@bp.post("/api/coach/message")
@login_required
def coach_message():
    body = json_body()
    return jsonify(coach_service.send_coach_message(g.user["id"], body.get("message"), body.get("day")))


@bp.get("/api/coach/ai-settings")
@login_required
def ai_settings_list():
    return jsonify(coach_service.get_ai_service_settings(g.user["id"]))


@bp.post("/api/coach/ai-settings")
@login_required
def ai_setting_create():
    return jsonify(coach_service.create_ai_service_setting(g.user["id"], json_body())), 201


@bp.delete("/api/coach/ai-settings/<int:setting_id>")
@login_required
def ai_setting_delete(setting_id: int):
    return jsonify(coach_service.delete_ai_service_setting(g.user["id"], setting_id))
