"""Pydantic settings loaded from .env, with conf.json overlay."""

from __future__ import annotations

import logging
import os
from pathlib import Path

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict
from pydantic_settings import BaseSettings

from errors import ConfigurationError

BASE_DIR = Path(__file__).resolve().parent

SUPPORTED_PROVIDERS = ("openai", "anthropic", "openai_compatible")

# ---------------------------------------------------------------------------
# conf.json: runtime config (separate from .env secrets)
# ---------------------------------------------------------------------------


def get_data_dir() -> Path:
    """Resolve the data directory. CHAT_RELAY_DIR env var or ~/.config/chat-relay."""
    d = os.environ.get("CHAT_RELAY_DIR", "")
    return Path(d).expanduser() if d else Path.home() / ".config" / "chat-relay"


class RuntimeConfig(BaseModel):
    database_url: str = ""
    log_level: str = ""
    log_file: str = ""
    llm_provider: str = ""
    llm_model: str = ""
    history_window: int | None = None
    cors_allow_all_origins: bool | None = None  # None = use Settings default


_logger = logging.getLogger(__name__)


def load_conf() -> RuntimeConfig:
    """Load conf.json from the data directory."""
    conf_path = get_data_dir() / "conf.json"
    if conf_path.exists():
        try:
            return RuntimeConfig.model_validate_json(conf_path.read_text())
        except Exception:
            _logger.warning("Failed to parse %s, using defaults", conf_path, exc_info=True)
    return RuntimeConfig()


# ---------------------------------------------------------------------------
# Bootstrap: load .env, load conf.json
# ---------------------------------------------------------------------------

_env_file = BASE_DIR.parent / ".env"
load_dotenv(_env_file)
_conf = load_conf()

# ---------------------------------------------------------------------------
# Settings (pydantic-settings): .env / env vars override conf.json defaults
# ---------------------------------------------------------------------------


class Settings(BaseSettings):
    # Both secrets are required; validate_settings() rejects empty values at startup.
    SECRET_KEY: str = ""
    LLM_API_KEY: str = ""
    OPENAI_API_KEY: str = ""

    LLM_PROVIDER: str = _conf.llm_provider or "openai"
    LLM_MODEL: str = _conf.llm_model or "gpt-4o-mini"
    LLM_BASE_URL: str = ""
    LLM_TEMPERATURE: float | None = None
    LLM_TIMEOUT: int | None = 60
    LLM_MAX_RETRIES: int | None = 2

    HISTORY_WINDOW: int = _conf.history_window if _conf.history_window is not None else 15

    DATABASE_URL: str = _conf.database_url or f"sqlite:///{BASE_DIR / 'db.sqlite3'}"

    CORS_ALLOW_ALL_ORIGINS: bool = (
        _conf.cors_allow_all_origins if _conf.cors_allow_all_origins is not None else True
    )

    SESSION_COOKIE_NAME: str = "session_token"
    SESSION_TTL_SECONDS: int = 30 * 24 * 3600
    SESSION_COOKIE_SECURE: bool = False
    MIN_PASSWORD_LENGTH: int = 6

    LOG_LEVEL: str = _conf.log_level or "INFO"
    LOG_FILE: str = _conf.log_file or ""
    LOG_MAX_BYTES: int = 10_485_760
    LOG_BACKUP_COUNT: int = 5

    model_config = ConfigDict(
        env_file=str(BASE_DIR.parent / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    @property
    def provider_api_key(self) -> str:
        """API key for the completion provider; LLM_API_KEY wins over OPENAI_API_KEY."""
        return self.LLM_API_KEY or self.OPENAI_API_KEY


def validate_settings(config: Settings) -> None:
    """Fail fast when the secrets the server cannot run without are missing."""
    problems: list[str] = []
    if not config.SECRET_KEY:
        problems.append("SECRET_KEY is not set")
    if not config.provider_api_key:
        problems.append("LLM_API_KEY (or OPENAI_API_KEY) is not set")
    if config.LLM_PROVIDER not in SUPPORTED_PROVIDERS:
        problems.append(
            f"LLM_PROVIDER must be one of {', '.join(SUPPORTED_PROVIDERS)}, got {config.LLM_PROVIDER!r}"
        )
    if config.LLM_PROVIDER == "openai_compatible" and not config.LLM_BASE_URL:
        problems.append("LLM_BASE_URL is required for the openai_compatible provider")
    if problems:
        raise ConfigurationError("; ".join(problems))


settings = Settings()
