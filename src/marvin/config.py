"""Configuration loaded from environment variables."""

import os
from dataclasses import dataclass, field
from pathlib import Path

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


@dataclass
class ReconnectPolicy:
    """How the transport retries after losing its connection."""

    max_attempts: int = 5
    backoff_seconds: float = 5.0


@dataclass
class Settings:
    """Application settings.

    Fields map to environment variables of the same name in upper case
    (see ``from_env``). A ``.env`` file in the working directory is loaded by
    the entry point before settings are read.
    """

    telegram_token: str | None = None
    groq_api_key: str | None = None
    groq_model: str = "llama-3.3-70b-versatile"
    mongodb_uri: str = "mongodb://localhost:27017"
    mongodb_db_name: str = "marvin"
    bot_name: str = "Marvin"
    group_only: bool = False
    reconnect: ReconnectPolicy = field(default_factory=ReconnectPolicy)
    log_level: str = "INFO"
    log_dir: Path = field(default_factory=lambda: Path.home() / ".marvin" / "logs")

    @classmethod
    def from_env(cls) -> "Settings":
        """Load settings from environment variables."""
        return cls(
            telegram_token=os.getenv("TELEGRAM_TOKEN"),
            groq_api_key=os.getenv("GROQ_API_KEY"),
            groq_model=os.getenv("GROQ_MODEL", "llama-3.3-70b-versatile"),
            mongodb_uri=os.getenv("MONGODB_URI", "mongodb://localhost:27017"),
            mongodb_db_name=os.getenv("MONGODB_DB_NAME", "marvin"),
            bot_name=os.getenv("BOT_NAME", "Marvin"),
            group_only=_env_bool("BOT_GROUP_ONLY"),
            reconnect=ReconnectPolicy(
                max_attempts=int(os.getenv("RECONNECT_MAX_ATTEMPTS", "5")),
                backoff_seconds=float(os.getenv("RECONNECT_BACKOFF_SECONDS", "5")),
            ),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
            log_dir=Path(os.getenv("LOG_DIR", str(Path.home() / ".marvin" / "logs"))),
        )
