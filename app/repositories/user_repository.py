from app import db
from app.models import User


def _user_to_payload(user: User) -> dict:
    return {
        "id": user.id,
        "email": user.email,
        "full_name": user.full_name,
        "created_at": user.created_at.isoformat() if user.created_at else None,
    }


def get_user_by_id(user_id: int) -> dict | None:
    user = db.session.get(User, user_id)
    return _user_to_payload(user) if user else None


def get_user_credentials_by_email(email: str) -> tuple[dict, str] | None:
    user = User.query.filter_by(email=email).first()
    if user is None:
        return None
    return _user_to_payload(user), user.password_hash


def email_exists(email: str) -> bool:
    return db.session.query(User.id).filter(User.email == email).first() is not None


def create_user(email: str, password_hash: str, full_name: str | None = None) -> dict:
    user = User(email=email, password_hash=password_hash, full_name=full_name)
    db.session.add(user)
    db.session.commit()
    return _user_to_payload(user)
