import os


def normalize_database_url(url: str) -> str:
    if url.startswith("postgres://"):
        return "postgresql+psycopg://" + url[len("postgres://") :]
    if url.startswith("postgresql://"):
        return "postgresql+psycopg://" + url[len("postgresql://") :]
    return url


def database_url_from_env() -> str:
    explicit = os.getenv("DATABASE_URL")
    if explicit:
        return normalize_database_url(explicit)

    db_host = os.getenv("DB_HOST")
    if not db_host:
        return "sqlite:///dev.db"

    user = os.getenv("DB_USER", "postgres")
    password = os.getenv("DB_PASSWORD", "")
    port = os.getenv("DB_PORT", "5432")
    name = os.getenv("DB_NAME", "fitledger")
    credentials = f"{user}:{password}" if password else user
    return f"postgresql+psycopg://{credentials}@{db_host}:{port}/{name}"


def _as_bool(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in {"1", "true", "yes", "on"}


class Config:
    SECRET_KEY = os.getenv("SECRET_KEY", "dev-secret-change-me")
    SQLALCHEMY_DATABASE_URI = database_url_from_env()
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    MAX_CONTENT_LENGTH = int(os.getenv("MAX_CONTENT_LENGTH", 2 * 1024 * 1024))

    JWT_SECRET = os.getenv("JWT_SECRET", "dev-secret-change-me")
    JWT_EXPIRATION_HOURS = int(os.getenv("JWT_EXPIRATION_HOURS", "24"))

    ENCRYPTION_MASTER_KEY = os.getenv("ENCRYPTION_MASTER_KEY")
    ENCRYPTION_REQUIRED = _as_bool("ENCRYPTION_REQUIRED")

    ADMIN_EMAIL = (os.getenv("ADMIN_EMAIL") or "").strip().lower() or None
    DISABLE_SIGNUP = _as_bool("DISABLE_SIGNUP")
    FRONTEND_URL = os.getenv("FRONTEND_URL", "http://localhost:3004")
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").strip().upper()

    OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
    OPENAI_COACH_MODEL = os.getenv("OPENAI_COACH_MODEL", "gpt-4.1-mini")
    COACH_HISTORY_LIMIT = int(os.getenv("COACH_HISTORY_LIMIT", "20"))
