import os
import re
from dataclasses import dataclass


@dataclass(frozen=True)
class Settings:
    database_url: str
    api_prefix: str
    app_env: str
    log_level: str
    log_format: str
    password_min_len: int
    email_re: re.Pattern[str]
    allow_admin_signup: bool
    default_page_limit: int
    max_page_limit: int
    db_pool_min: int
    db_pool_max: int
    db_pool_timeout: float
    db_pool_max_waiting: int
    auto_migrate: bool
    bcrypt_rounds: int


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


def load_settings() -> Settings:
    database_url = os.getenv("DATABASE_URL", "")
    if not database_url:
        raise RuntimeError("DATABASE_URL is required")

    api_prefix = (os.getenv("API_PREFIX") or "/api").strip().rstrip("/")
    if api_prefix and not api_prefix.startswith("/"):
        api_prefix = "/" + api_prefix

    log_format = (os.getenv("LOG_FORMAT") or "text").strip().lower()
    if log_format not in ("text", "json"):
        log_format = "text"

    db_pool_min = max(1, int(os.getenv("DB_POOL_MIN", "1")))
    db_pool_max = max(db_pool_min, int(os.getenv("DB_POOL_MAX", "10")))

    max_page_limit = max(1, int(os.getenv("MAX_PAGE_LIMIT", "100")))
    default_page_limit = max(1, min(max_page_limit, int(os.getenv("DEFAULT_PAGE_LIMIT", "10"))))

    return Settings(
        database_url=database_url,
        api_prefix=api_prefix,
        app_env=(os.getenv("APP_ENV") or "development").strip() or "development",
        log_level=(os.getenv("LOG_LEVEL") or "INFO").strip().upper() or "INFO",
        log_format=log_format,
        password_min_len=max(1, int(os.getenv("PASSWORD_MIN_LEN", "6"))),
        email_re=re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$"),
        allow_admin_signup=_env_flag("ALLOW_ADMIN_SIGNUP"),
        default_page_limit=default_page_limit,
        max_page_limit=max_page_limit,
        db_pool_min=db_pool_min,
        db_pool_max=db_pool_max,
        db_pool_timeout=float(os.getenv("DB_POOL_TIMEOUT", "30")),
        db_pool_max_waiting=int(os.getenv("DB_POOL_MAX_WAITING", "100")),
        auto_migrate=_env_flag("AUTO_MIGRATE"),
        bcrypt_rounds=max(4, min(31, int(os.getenv("BCRYPT_ROUNDS", "12")))),
    )


settings = load_settings()
