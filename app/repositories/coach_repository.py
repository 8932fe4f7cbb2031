from app import db
from app.models import AIServiceSetting, CoachChatMessage


def _message_to_payload(message: CoachChatMessage) -> dict:
    return {
        "id": message.id,
        "role": message.role,
        "content": message.content,
        "created_at": message.created_at.isoformat() if message.created_at else None,
    }


def _setting_to_payload(setting: AIServiceSetting) -> dict:
    # The encrypted key never leaves the repository in listings.
    return {
        "id": setting.id,
        "user_id": setting.user_id,
        "service_name": setting.service_name,
        "model_name": setting.model_name,
        "is_active": setting.is_active,
        "has_api_key": bool(setting.encrypted_api_key),
    }


def add_chat_message(user_id: int, role: str, content: str) -> dict:
    message = CoachChatMessage(user_id=user_id, role=role, content=content)
    db.session.add(message)
    db.session.commit()
    return _message_to_payload(message)


def get_chat_history(user_id: int, limit: int = 20) -> list[dict]:
    messages = (
        CoachChatMessage.query.filter_by(user_id=user_id)
        .order_by(CoachChatMessage.created_at.desc(), CoachChatMessage.id.desc())
        .limit(limit)
        .all()
    )
    return [_message_to_payload(message) for message in reversed(messages)]


def clear_chat_history(user_id: int) -> int:
    deleted = CoachChatMessage.query.filter_by(user_id=user_id).delete()
    db.session.commit()
    return deleted


def get_ai_service_settings(user_id: int) -> list[dict]:
    settings = AIServiceSetting.query.filter_by(user_id=user_id).order_by(AIServiceSetting.created_at.asc()).all()
    return [_setting_to_payload(setting) for setting in settings]


def get_active_ai_service_setting(user_id: int) -> tuple[dict, bytes | None] | None:
    setting = AIServiceSetting.query.filter_by(user_id=user_id, is_active=True).first()
    if setting is None:
        return None
    return _setting_to_payload(setting), setting.encrypted_api_key


def create_ai_service_setting(setting_data: dict) -> dict:
    if setting_data.get("is_active", True):
        AIServiceSetting.query.filter_by(user_id=setting_data["user_id"]).update(
            {AIServiceSetting.is_active: False},
            synchronize_session=False,
        )
    setting = AIServiceSetting(
        user_id=setting_data["user_id"],
        service_name=setting_data.get("service_name") or "openai",
        model_name=setting_data.get("model_name"),
        encrypted_api_key=setting_data.get("encrypted_api_key"),
        is_active=setting_data.get("is_active", True),
    )
    db.session.add(setting)
    db.session.commit()
    return _setting_to_payload(setting)


def get_ai_service_setting_owner_id(setting_id: int) -> int | None:
    return db.session.query(AIServiceSetting.user_id).filter(AIServiceSetting.id == setting_id).scalar()


def delete_ai_service_setting(setting_id: int, user_id: int) -> bool:
    deleted = AIServiceSetting.query.filter_by(id=setting_id, user_id=user_id).delete()
    db.session.commit()
    return deleted > 0
