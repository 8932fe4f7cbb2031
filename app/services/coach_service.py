from datetime import date, datetime

from flask import current_app
from openai import OpenAI, OpenAIError

from app.errors import NotFoundError, UpstreamServiceError, ValidationError
from app.repositories import coach_repository, exercise_repository, meal_repository, measurement_repository
from app.security import decrypt_secret_for_user, encrypt_secret_for_user, encryption_enabled
from app.services.common import parse_optional_date, require_owner
from app.services.meal_service import build_nutrition_summary

API_KEY_SCOPE = "ai-service-key"
MAX_MESSAGE_LENGTH = 4000
COACH_SYSTEM_PROMPT = (
    "You are a supportive nutrition and fitness coach. Use the user's logged data below to give "
    "short, practical answers. Do not give medical diagnoses."
)
SUPPORTED_SERVICES = {"openai"}


def coach_prompt_missing_fields(day_meals: list[dict], water: dict | None, checkin: dict | None, now: datetime | None = None):
    prompts = []
    now = now or datetime.now()

    if now.hour >= 10 and not checkin:
        prompts.append("It is after 10am and today has no check-in. Log weight or steps for cleaner trends.")
    if now.hour >= 14 and not day_meals:
        prompts.append("It is after 2pm and no meals are logged. Add at least one meal entry.")
    if now.hour >= 16 and not (water or {}).get("water_ml"):
        prompts.append("No water logged yet today. Add the drinks you had so far.")
    return prompts


def build_coach_context(user_id: int, selected_day: date) -> str:
    day_meals = meal_repository.get_meals_by_date(user_id, selected_day)
    water = measurement_repository.get_water_intake_by_date(user_id, selected_day)
    checkin = measurement_repository.get_check_in_measurements_by_date(user_id, selected_day)
    exercises = exercise_repository.get_exercise_entries_by_date(user_id, selected_day)

    nutrition = build_nutrition_summary(selected_day, day_meals)
    totals = nutrition["totals"]
    lines = [
        f"Day: {selected_day.isoformat()}",
        f"Meals logged: {nutrition['meal_count']}",
        (
            f"Calories: {totals['calories']} kcal, protein {totals['protein_g']} g, "
            f"carbs {totals['carbs_g']} g, fat {totals['fat_g']} g"
        ),
        f"Water: {round((water or {}).get('water_ml') or 0)} ml",
    ]
    if checkin:
        measured = [f"{key} {checkin[key]}" for key in ("weight", "waist", "steps") if checkin.get(key) is not None]
        lines.append(f"Check-in: {', '.join(measured) if measured else 'no values'}")
    else:
        lines.append("Check-in: none")

    burned = sum(float(entry.get("calories_burned") or 0) for entry in exercises)
    minutes = sum(float(entry.get("duration_minutes") or 0) for entry in exercises)
    lines.append(f"Exercise: {len(exercises)} entries, {round(minutes)} min, {round(burned)} kcal burned")

    if selected_day == date.today():
        for prompt in coach_prompt_missing_fields(day_meals, water, checkin):
            lines.append(f"Data gap: {prompt}")
    return "\n".join(lines)


def _resolve_ai_credentials(user_id: int) -> tuple[str | None, str]:
    model = current_app.config.get("OPENAI_COACH_MODEL") or "gpt-4.1-mini"
    active = coach_repository.get_active_ai_service_setting(user_id)
    if active:
        setting, encrypted_key = active
        if setting.get("model_name"):
            model = setting["model_name"]
        if encrypted_key and encryption_enabled():
            api_key = decrypt_secret_for_user(user_id, encrypted_key, scope=API_KEY_SCOPE)
            if api_key:
                return api_key, model
    return current_app.config.get("OPENAI_API_KEY"), model


def get_coach_history(authenticated_user_id: int) -> list[dict]:
    limit = current_app.config.get("COACH_HISTORY_LIMIT", 20)
    return coach_repository.get_chat_history(authenticated_user_id, limit=limit)


def clear_coach_history(authenticated_user_id: int) -> dict:
    deleted = coach_repository.clear_chat_history(authenticated_user_id)
    return {"message": "Coach chat history cleared.", "deleted": deleted}


def _save_exchange(user_id: int, message: str, reply: str) -> dict:
    # A failed provider call leaves no unanswered user turn behind.
    coach_repository.add_chat_message(user_id, "user", message)
    return coach_repository.add_chat_message(user_id, "assistant", reply)


def send_coach_message(authenticated_user_id: int, message: str, day=None) -> dict:
    text = " ".join((message or "").split())
    if not text:
        raise ValidationError("Message is required.")
    if len(text) > MAX_MESSAGE_LENGTH:
        raise ValidationError(f"Message must be at most {MAX_MESSAGE_LENGTH} characters.")

    selected_day = parse_optional_date(day, "day") or date.today()
    history = get_coach_history(authenticated_user_id)

    api_key, model = _resolve_ai_credentials(authenticated_user_id)
    if not api_key:
        reply = "Set OPENAI_API_KEY or add an AI service key in settings to enable coaching."
        return {"reply": _save_exchange(authenticated_user_id, text, reply), "configured": False}

    context = build_coach_context(authenticated_user_id, selected_day)
    conversation = [{"role": "system", "content": f"{COACH_SYSTEM_PROMPT}\n\n{context}"}]
    conversation.extend({"role": item["role"], "content": item["content"]} for item in history)
    conversation.append({"role": "user", "content": text})

    client = OpenAI(api_key=api_key)
    try:
        resp = client.responses.create(model=model, input=conversation)
    except OpenAIError as exc:
        current_app.logger.error("Coach reply failed for user_id=%s: %s", authenticated_user_id, exc)
        raise UpstreamServiceError("The coach is unavailable right now. Try again shortly.") from exc

    reply = (resp.output_text or "").strip() or "No reply generated."
    return {"reply": _save_exchange(authenticated_user_id, text, reply), "configured": True}


# ---- AI service settings ----


def get_ai_service_settings(authenticated_user_id: int) -> list[dict]:
    return coach_repository.get_ai_service_settings(authenticated_user_id)


def create_ai_service_setting(authenticated_user_id: int, setting_data: dict) -> dict:
    service_name = (setting_data.get("service_name") or "openai").strip().lower()
    if service_name not in SUPPORTED_SERVICES:
        raise ValidationError(f"Unsupported AI service: {service_name}")

    api_key = (setting_data.get("api_key") or "").strip()
    encrypted_key = None
    if api_key:
        if not encryption_enabled():
            raise ValidationError("ENCRYPTION_MASTER_KEY must be configured before storing API keys.")
        encrypted_key = encrypt_secret_for_user(authenticated_user_id, api_key, scope=API_KEY_SCOPE)

    return coach_repository.create_ai_service_setting(
        {
            "user_id": authenticated_user_id,
            "service_name": service_name,
            "model_name": (setting_data.get("model_name") or "").strip()[:80] or None,
            "encrypted_api_key": encrypted_key,
            "is_active": bool(setting_data.get("is_active", True)),
        }
    )


def delete_ai_service_setting(authenticated_user_id: int, setting_id: int) -> dict:
    owner_id = coach_repository.get_ai_service_setting_owner_id(setting_id)
    require_owner(owner_id, authenticated_user_id, entity="AI service setting", action="delete")
    if not coach_repository.delete_ai_service_setting(setting_id, authenticated_user_id):
        raise NotFoundError("AI service setting not found.")
    return {"message": "AI service setting deleted successfully."}
