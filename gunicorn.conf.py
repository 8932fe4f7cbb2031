import os


def _as_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    try:
        return int(raw) if raw is not None else int(default)
    except (TypeError, ValueError):
        return int(default)


# Auto-loaded by gunicorn when present in the working directory.
bind = f"0.0.0.0:{_as_int('PORT', 8000)}"
workers = max(1, _as_int("GUNICORN_WORKERS", _as_int("WEB_CONCURRENCY", 2)))
threads = max(1, _as_int("GUNICORN_THREADS", 2))
worker_class = os.getenv("GUNICORN_WORKER_CLASS", "gthread")

timeout = _as_int("GUNICORN_TIMEOUT", 60)
graceful_timeout = _as_int("GUNICORN_GRACEFUL_TIMEOUT", 30)
keepalive = _as_int("GUNICORN_KEEPALIVE", 5)

max_requests = _as_int("GUNICORN_MAX_REQUESTS", 500)
max_requests_jitter = _as_int("GUNICORN_MAX_REQUESTS_JITTER", 50)

# Logs go to stdout/stderr for the container runtime.
accesslog = "-"
errorlog = "-"
loglevel = os.getenv("LOG_LEVEL", "info").lower()
