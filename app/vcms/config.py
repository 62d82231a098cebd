import os
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    secret_key: str
    env: str
    database_url: str

    max_upload_bytes: int
    import_max_attempts: int
    request_timeout_seconds: int


def _getenv(name: str, default: str = "") -> str:
    return (os.environ.get(name) or default).strip()


def _getenv_int(name: str, default: int) -> int:
    raw = _getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        raise RuntimeError(f"{name} must be an integer (got {raw!r}).") from None


def load_settings() -> Settings:
    return Settings(
        secret_key=_getenv("SECRET_KEY", "change-me"),
        env=_getenv("ENV", "development"),
        database_url=_getenv("DATABASE_URL", "sqlite:///vcms.db"),
        max_upload_bytes=_getenv_int("MAX_UPLOAD_BYTES", 10 * 1024 * 1024),
        import_max_attempts=_getenv_int("IMPORT_MAX_ATTEMPTS", 3),
        request_timeout_seconds=_getenv_int("REQUEST_TIMEOUT_SECONDS", 30),
    )


def load_config() -> dict:
    s = load_settings()
    return {
        "SECRET_KEY": s.secret_key,
        "ENV": s.env,
        "DATABASE_URL": s.database_url,
        # file upload limit (10MB default)
        "MAX_CONTENT_LENGTH": s.max_upload_bytes,
        # identifier conflicts tolerated before a batch is rejected
        "IMPORT_MAX_ATTEMPTS": max(1, s.import_max_attempts),
        "REQUEST_TIMEOUT_SECONDS": s.request_timeout_seconds,
    }
