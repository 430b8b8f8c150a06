"""Application configuration using environment variables."""

from functools import lru_cache
from pathlib import Path
from typing import Optional

from pydantic import AliasChoices, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve the project root once so that `.env` is discovered regardless of CWD
PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent

DEFAULT_STATE_DIR = Path("~/.clawdbot")
CONFIG_FILENAME = "clawdbot.json"


class Settings(BaseSettings):
    """Load configuration from environment variables and `.env`."""

    model_config = SettingsConfigDict(
        env_file=str(PROJECT_ROOT / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Gateway state directory (config file, per-host preferences)
    state_dir: Path = Field(
        default_factory=lambda: DEFAULT_STATE_DIR,
        validation_alias=AliasChoices("CLAWDBOT_STATE_DIR", "state_dir"),
    )
    config_path: Optional[Path] = Field(
        default=None,
        validation_alias=AliasChoices("CLAWDBOT_CONFIG_PATH", "config_path"),
        description="Gateway JSON config file. Defaults to <state_dir>/clawdbot.json.",
    )
    tts_prefs_path: Optional[Path] = Field(
        default=None,
        validation_alias=AliasChoices("CLAWDBOT_TTS_PREFS", "tts_prefs_path"),
    )

    # Provider credentials
    openai_api_key: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("OPENAI_API_KEY", "openai_api_key"),
    )
    elevenlabs_api_key: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices(
            "ELEVENLABS_API_KEY",
            "XI_API_KEY",
            "elevenlabs_api_key",
        ),
    )
    openrouter_api_key: SecretStr | None = Field(
        default=None,
        validation_alias=AliasChoices("OPENROUTER_API_KEY", "openrouter_api_key"),
    )

    @property
    def resolved_state_dir(self) -> Path:
        return self.state_dir.expanduser()

    @property
    def resolved_config_path(self) -> Path:
        if self.config_path is not None:
            return self.config_path.expanduser()
        return self.resolved_state_dir / CONFIG_FILENAME

    def secret(self, name: str) -> str | None:
        """Return the plain value of a secret field, or None when unset/blank."""

        value: SecretStr | None = getattr(self, name, None)
        if value is None:
            return None
        plain = value.get_secret_value().strip()
        return plain or None


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached `Settings` instance."""

    return Settings()  # pyright: ignore[reportCallIssue]


__all__ = ["Settings", "get_settings"]
