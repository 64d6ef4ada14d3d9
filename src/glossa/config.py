"""
Environment-driven settings.

Values come from the process environment, optionally seeded from a .env file.
"""

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()


def _int(name: str, default: int, minimum: int = 1) -> int:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got {raw!r}")
    if value < minimum:
        raise ValueError(f"{name} must be >= {minimum}, got {value}")
    return value


def _float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}")
    if value < 0:
        raise ValueError(f"{name} must be >= 0, got {value}")
    return value


def _bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or raw == "":
        return default
    return raw.strip().lower() in ("1", "true", "yes", "on")


@dataclass
class Settings:
    """Runtime settings for both the pipeline client and the server."""

    server_url: str = "ws://localhost:8080/ws/translate"
    target_language: str = "es"
    debounce_ms: int = 100
    cache_size: int = 1000
    server_cache_size: int = 10000
    work_concurrency: int = 5
    reconnect_base_delay: float = 1.0
    reconnect_max_delay: float = 30.0
    resend_on_reconnect: bool = False
    provider: str = "openai"
    openai_model: str = "gpt-4.1-mini"
    allowed_origins: list[str] = field(default_factory=list)
    host: str = "0.0.0.0"
    port: int = 8080

    @property
    def debounce_seconds(self) -> float:
        return self.debounce_ms / 1000


def get_settings() -> Settings:
    """
    Build Settings from the environment.

    Raises:
        ValueError: If a numeric variable cannot be parsed
    """
    origins = os.getenv("ALLOWED_ORIGINS", "")
    return Settings(
        server_url=os.getenv("GLOSSA_SERVER_URL", "ws://localhost:8080/ws/translate"),
        target_language=os.getenv("GLOSSA_TARGET_LANGUAGE", "es"),
        debounce_ms=_int("GLOSSA_DEBOUNCE_MS", 100, minimum=0),
        cache_size=_int("GLOSSA_CACHE_SIZE", 1000),
        server_cache_size=_int("GLOSSA_SERVER_CACHE_SIZE", 10000),
        work_concurrency=_int("GLOSSA_WORK_CONCURRENCY", 5),
        reconnect_base_delay=_float("GLOSSA_RECONNECT_BASE_DELAY", 1.0),
        reconnect_max_delay=_float("GLOSSA_RECONNECT_MAX_DELAY", 30.0),
        resend_on_reconnect=_bool("GLOSSA_RESEND_ON_RECONNECT", False),
        provider=os.getenv("TRANSLATION_PROVIDER", "openai").lower(),
        openai_model=os.getenv("OPENAI_TRANSLATION_MODEL", "gpt-4.1-mini"),
        allowed_origins=[o.strip() for o in origins.split(",") if o.strip()],
        host=os.getenv("HOST", "0.0.0.0"),
        port=_int("PORT", 8080),
    )
