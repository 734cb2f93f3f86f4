# preamble/config.py
import os
from typing import Mapping, Optional

from .errors import ConfigError


def _flag(value: Optional[str], default: bool) -> bool:
    if value is None or value == "":
        return default
    return value.lower() in ("1", "true", "yes")


class Settings:
    """
    Process configuration, read from the environment (or any mapping).

    Nothing is checked at construction time; ``create_app`` calls
    ``validate()`` so a missing variable fails at startup with its name.
    """

    REQUIRED = (
        "SECRET_KEY",
        "LLM_API_KEY",
        "DATABASE_URL",
        "GITHUB_CLIENT_ID",
        "GITHUB_CLIENT_SECRET",
    )

    def __init__(self, env: Optional[Mapping[str, str]] = None, **overrides):
        env = os.environ if env is None else env

        # -------- App secret & cookies --------
        self.SECRET_KEY: str = env.get("SECRET_KEY", "")
        self.SESSION_COOKIE_NAME = "preamble_session"
        self.SESSION_COOKIE_SAMESITE: str = env.get("SESSION_COOKIE_SAMESITE", "Lax")
        self.SESSION_COOKIE_SECURE: bool = _flag(env.get("SESSION_COOKIE_SECURE"), True)
        self.APP_URL: str = env.get("APP_URL", "http://localhost:5000").rstrip("/")

        # -------- Completion API (OpenAI-compatible) --------
        self.LLM_API_KEY: str = env.get("LLM_API_KEY") or env.get("GROQ_API_KEY") or ""
        self.LLM_BASE_URL: str = env.get("LLM_BASE_URL", "https://api.groq.com/openai/v1")
        self.LLM_MODEL: str = env.get("LLM_MODEL", "llama-3.3-70b-versatile")
        self.LLM_TEMPERATURE: float = float(env.get("LLM_TEMPERATURE", "0.5"))
        self.LLM_TIMEOUT: float = float(env.get("LLM_TIMEOUT", "120"))

        # -------- Postgres --------
        self.DATABASE_URL: str = env.get("DATABASE_URL", "")
        self.DATABASE_PASSWORD: Optional[str] = env.get("DATABASE_PASSWORD") or None
        self.DB_POOL_MAX: int = int(env.get("DB_POOL_MAX", "5"))

        # -------- GitHub OAuth / REST --------
        self.GITHUB_CLIENT_ID: str = env.get("GITHUB_CLIENT_ID", "")
        self.GITHUB_CLIENT_SECRET: str = env.get("GITHUB_CLIENT_SECRET", "")
        self.GITHUB_TOKEN: Optional[str] = env.get("GITHUB_TOKEN") or None  # fallback for anonymous use
        self.GITHUB_API_URL: str = env.get("GITHUB_API_URL", "https://api.github.com").rstrip("/")
        self.GITHUB_TIMEOUT: float = float(env.get("GITHUB_TIMEOUT", "15"))

        # -------- Uploads --------
        self.MAX_UPLOAD_MB: int = int(env.get("MAX_UPLOAD_MB", "20"))

        # -------- i18n --------
        self.SUPPORTED_LOCALES = ["en", "es"]

        # -------- Misc --------
        self.LOG_LEVEL: str = env.get("LOG_LEVEL", "INFO")
        self.LOG_FILE: Optional[str] = env.get("LOG_FILE") or None

        for key, value in overrides.items():
            if not hasattr(self, key):
                raise AttributeError(f"Unknown setting: {key}")
            setattr(self, key, value)

    def missing(self) -> list[str]:
        return [name for name in self.REQUIRED if not getattr(self, name)]

    def validate(self) -> "Settings":
        missing = self.missing()
        if missing:
            raise ConfigError(missing)
        return self
