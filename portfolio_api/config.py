import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: bool = False) -> bool:
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_list(name: str, default: str = "") -> tuple[str, ...]:
    raw_value = os.getenv(name, default)
    return tuple(item.strip() for item in raw_value.split(",") if item.strip())


def _cors_origins() -> tuple[str, ...]:
    origins = list(
        _env_list("CORS_ORIGINS", "http://localhost:5173,http://localhost:5174")
    )
    for name in ("FRONTEND_URL", "ADMIN_URL"):
        value = os.getenv(name, "").strip()
        if value and value not in origins:
            origins.append(value)
    return tuple(origins)


@dataclass(frozen=True)
class Settings:
    environment: str = os.getenv("APP_ENV", "development").strip().lower()
    log_level: str = os.getenv("LOG_LEVEL", "INFO")
    jwt_secret: str = os.getenv("JWT_SECRET", "")
    jwt_algorithm: str = os.getenv("JWT_ALGORITHM", "HS256")
    access_token_expire_days: int = int(os.getenv("ACCESS_TOKEN_EXPIRE_DAYS", "7"))
    session_secret: str = os.getenv("SESSION_SECRET", "")
    session_cookie_name: str = os.getenv("SESSION_COOKIE_NAME", "sid")
    session_ttl_seconds: int = int(os.getenv("SESSION_TTL_SECONDS", "86400"))
    rate_limit_window_seconds: int = int(
        os.getenv("RATE_LIMIT_WINDOW_SECONDS", "900")
    )
    rate_limit_max_requests: int = int(os.getenv("RATE_LIMIT_MAX_REQUESTS", "100"))
    login_rate_limit_max_attempts: int = int(
        os.getenv("LOGIN_RATE_LIMIT_MAX_ATTEMPTS", "5")
    )
    revoke_tokens_on_password_change: bool = _env_bool(
        "REVOKE_TOKENS_ON_PASSWORD_CHANGE", False
    )
    min_password_length: int = int(os.getenv("MIN_PASSWORD_LENGTH", "6"))
    blocked_ips: tuple[str, ...] = field(default_factory=lambda: _env_list("BLOCKED_IPS"))
    cors_origins: tuple[str, ...] = field(default_factory=_cors_origins)
    seed_email: str = os.getenv("ADMIN_EMAIL", "").strip().lower()
    seed_password: str = os.getenv("ADMIN_PASSWORD", "")
    seed_name: str = os.getenv("ADMIN_NAME", "Admin").strip()

    @property
    def is_production(self) -> bool:
        return self.environment == "production"


settings = Settings()
