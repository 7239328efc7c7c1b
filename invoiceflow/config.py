from __future__ import annotations

from dataclasses import dataclass
import os


def _parse_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


def _parse_csv(value: str | None) -> list[str]:
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def _parse_prefix(value: str | None) -> str:
    if value is None:
        return "/make-server-ec5ebf11"
    value = value.strip().rstrip("/")
    if value and not value.startswith("/"):
        value = "/" + value
    return value


@dataclass(frozen=True)
class Settings:
    app_env: str
    database_url: str
    api_prefix: str
    cors_origins: list[str]
    log_level: str
    enforce_forward_transitions: bool


def load_settings() -> Settings:
    return Settings(
        app_env=os.getenv("APP_ENV", "development"),
        database_url=os.getenv("DATABASE_URL", "sqlite:///./invoiceflow.db"),
        api_prefix=_parse_prefix(os.getenv("API_PREFIX")),
        cors_origins=_parse_csv(os.getenv("CORS_ORIGINS", "*")),
        log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        enforce_forward_transitions=_parse_bool(os.getenv("ENFORCE_FORWARD_TRANSITIONS"), False),
    )


settings = load_settings()


def get_settings() -> Settings:
    return settings
