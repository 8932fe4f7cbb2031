from flask import current_app
from werkzeug.security import check_password_hash, generate_password_hash

from app.errors import AuthenticationError, ForbiddenError, ValidationError
from app.repositories import user_repository
from app.security import create_access_token

MIN_PASSWORD_LENGTH = 8


def normalize_email(value: str | None):
    if not value:
        return None
    return value.strip().lower()


def is_admin(user: dict | None) -> bool:
    admin_email = current_app.config.get("ADMIN_EMAIL")
    return bool(user and admin_email and user.get("email") == admin_email)


def register_user(email: str | None, password: str | None, full_name: str | None = None) -> dict:
    if current_app.config.get("DISABLE_SIGNUP"):
        raise ForbiddenError("Signup is disabled on this server.")

    email = normalize_email(email)
    password = password or ""
    if not email or "@" not in email:
        raise ValidationError("A valid email is required.")
    if len(password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
    if user_repository.email_exists(email):
        raise ValidationError("An account with that email already exists.")

    user = user_repository.create_user(
        email=email,
        password_hash=generate_password_hash(password),
        full_name=(full_name or "").strip() or None,
    )
    current_app.logger.info("Registered user_id=%s", user["id"])
    return {"user": user, "token": create_access_token(user["id"], user["email"])}


def authenticate(email: str | None, password: str | None) -> dict:
    email = normalize_email(email)
    found = user_repository.get_user_credentials_by_email(email) if email else None
    if not found or not check_password_hash(found[1], password or ""):
        raise AuthenticationError("Invalid email or password.")

    user = found[0]
    return {"user": user, "token": create_access_token(user["id"], user["email"])}
