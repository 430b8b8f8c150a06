"""Resolve the effective TTS configuration.

Values are layered with a fixed precedence, evaluated on every call:
per-host prefs > gateway file config > environment > built-in default.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from ..config import Settings
from ..schemas.gateway_config import GatewayConfig, TtsMode, TtsProviderId
from .tts_directives import ModelOverridePolicy, resolve_model_override_policy
from .tts_prefs import get_prefs_provider, is_tts_enabled as _prefs_enabled

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_MS = 30_000
DEFAULT_MAX_TEXT_LENGTH = 4096
DEFAULT_PROVIDER: TtsProviderId = "elevenlabs"
DEFAULT_MODE: TtsMode = "final"

DEFAULT_ELEVENLABS_BASE_URL = "https://api.elevenlabs.io"
DEFAULT_ELEVENLABS_VOICE_ID = "pMsXgVXv3BLzUgSXRplE"
DEFAULT_ELEVENLABS_MODEL_ID = "eleven_multilingual_v2"
DEFAULT_OPENAI_MODEL = "gpt-4o-mini-tts"
DEFAULT_OPENAI_VOICE = "alloy"


@dataclass(frozen=True)
class OutputFormat:
    """Audio container/codec used for a destination channel."""

    openai: str
    elevenlabs: str
    extension: str
    voice_compatible: bool


TELEGRAM_OUTPUT = OutputFormat(
    openai="opus",
    elevenlabs="opus_48000_64",
    extension=".opus",
    voice_compatible=True,
)
DEFAULT_OUTPUT = OutputFormat(
    openai="mp3",
    elevenlabs="mp3_44100_128",
    extension=".mp3",
    voice_compatible=False,
)


def resolve_output_format(channel: Optional[str] = None) -> OutputFormat:
    """Telegram gets Opus (renders as a voice bubble); every other channel MP3."""

    if channel is not None and channel.strip().lower() == "telegram":
        return TELEGRAM_OUTPUT
    return DEFAULT_OUTPUT


@dataclass(frozen=True)
class ElevenLabsVoiceSettings:
    stability: float = 0.5
    similarity_boost: float = 0.75
    style: float = 0.0
    use_speaker_boost: bool = True
    speed: float = 1.0


@dataclass(frozen=True)
class ElevenLabsSettings:
    api_key: Optional[str] = None
    base_url: str = DEFAULT_ELEVENLABS_BASE_URL
    voice_id: str = DEFAULT_ELEVENLABS_VOICE_ID
    model_id: str = DEFAULT_ELEVENLABS_MODEL_ID
    seed: Optional[int] = None
    apply_text_normalization: Optional[str] = None
    language_code: Optional[str] = None
    voice_settings: ElevenLabsVoiceSettings = field(default_factory=ElevenLabsVoiceSettings)


@dataclass(frozen=True)
class OpenAISettings:
    api_key: Optional[str] = None
    model: str = DEFAULT_OPENAI_MODEL
    voice: str = DEFAULT_OPENAI_VOICE


@dataclass(frozen=True)
class ResolvedTtsConfig:
    enabled: bool = False
    mode: TtsMode = DEFAULT_MODE
    provider: TtsProviderId = DEFAULT_PROVIDER
    summary_model: Optional[str] = None
    model_overrides: ModelOverridePolicy = field(default_factory=ModelOverridePolicy)
    elevenlabs: ElevenLabsSettings = field(default_factory=ElevenLabsSettings)
    openai: OpenAISettings = field(default_factory=OpenAISettings)
    prefs_path: Optional[str] = None
    max_text_length: int = DEFAULT_MAX_TEXT_LENGTH
    timeout_ms: int = DEFAULT_TIMEOUT_MS


def _first(*values):
    for value in values:
        if value is not None:
            return value
    return None


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    return value or None


def resolve_tts_config(
    gateway_config: Optional[GatewayConfig],
    settings: Settings,
) -> ResolvedTtsConfig:
    """Merge ``messages.tts`` with environment credentials and defaults."""

    raw = (gateway_config or GatewayConfig()).messages.tts
    voice_defaults = ElevenLabsVoiceSettings()
    raw_voice = raw.elevenlabs.voice_settings

    elevenlabs = ElevenLabsSettings(
        api_key=_first(
            _blank_to_none(raw.elevenlabs.api_key),
            settings.secret("elevenlabs_api_key"),
        ),
        base_url=(
            _blank_to_none(raw.elevenlabs.base_url) or DEFAULT_ELEVENLABS_BASE_URL
        ).rstrip("/"),
        voice_id=_blank_to_none(raw.elevenlabs.voice_id) or DEFAULT_ELEVENLABS_VOICE_ID,
        model_id=_blank_to_none(raw.elevenlabs.model_id) or DEFAULT_ELEVENLABS_MODEL_ID,
        seed=raw.elevenlabs.seed,
        apply_text_normalization=raw.elevenlabs.apply_text_normalization,
        language_code=_blank_to_none(raw.elevenlabs.language_code),
        voice_settings=ElevenLabsVoiceSettings(
            stability=_first(raw_voice.stability, voice_defaults.stability),
            similarity_boost=_first(
                raw_voice.similarity_boost, voice_defaults.similarity_boost
            ),
            style=_first(raw_voice.style, voice_defaults.style),
            use_speaker_boost=_first(
                raw_voice.use_speaker_boost, voice_defaults.use_speaker_boost
            ),
            speed=_first(raw_voice.speed, voice_defaults.speed),
        ),
    )
    openai = OpenAISettings(
        api_key=_first(_blank_to_none(raw.openai.api_key), settings.secret("openai_api_key")),
        model=_blank_to_none(raw.openai.model) or DEFAULT_OPENAI_MODEL,
        voice=_blank_to_none(raw.openai.voice) or DEFAULT_OPENAI_VOICE,
    )

    return ResolvedTtsConfig(
        enabled=_first(raw.enabled, False),
        mode=raw.mode or DEFAULT_MODE,
        provider=raw.provider or DEFAULT_PROVIDER,
        summary_model=_blank_to_none(raw.summary_model),
        model_overrides=resolve_model_override_policy(raw.model_overrides),
        elevenlabs=elevenlabs,
        openai=openai,
        prefs_path=_blank_to_none(raw.prefs_path),
        max_text_length=raw.max_text_length or DEFAULT_MAX_TEXT_LENGTH,
        timeout_ms=raw.timeout_ms or DEFAULT_TIMEOUT_MS,
    )


def resolve_tts_prefs_path(config: ResolvedTtsConfig, settings: Settings) -> Path:
    """File config path, then ``CLAWDBOT_TTS_PREFS``, then the state dir."""

    if config.prefs_path:
        return Path(config.prefs_path).expanduser()
    if settings.tts_prefs_path is not None:
        return settings.tts_prefs_path.expanduser()
    return settings.resolved_state_dir / "settings" / "tts.json"


def resolve_tts_api_key(config: ResolvedTtsConfig, provider: str) -> Optional[str]:
    if provider == "elevenlabs":
        return config.elevenlabs.api_key
    if provider == "openai":
        return config.openai.api_key
    return None


def other_provider(provider: str) -> TtsProviderId:
    return "elevenlabs" if provider == "openai" else "openai"


def resolve_tts_provider_order(primary: str) -> list[TtsProviderId]:
    return [primary, other_provider(primary)]  # type: ignore[list-item]


def is_tts_enabled(config: ResolvedTtsConfig, prefs_path: Path) -> bool:
    return _prefs_enabled(prefs_path, default=config.enabled)


def get_tts_provider(config: ResolvedTtsConfig, prefs_path: Path) -> TtsProviderId:
    """Pick the primary provider, swapping once if only the other has a key."""

    primary = get_prefs_provider(prefs_path) or config.provider
    if resolve_tts_api_key(config, primary):
        return primary
    fallback = other_provider(primary)
    if resolve_tts_api_key(config, fallback):
        logger.debug(f"TTS provider {primary} has no API key, using {fallback}")
        return fallback
    return primary


def is_tts_available(config: ResolvedTtsConfig) -> bool:
    return any(resolve_tts_api_key(config, provider) for provider in ("openai", "elevenlabs"))


__all__ = [
    "DEFAULT_OUTPUT",
    "ElevenLabsSettings",
    "ElevenLabsVoiceSettings",
    "OpenAISettings",
    "OutputFormat",
    "ResolvedTtsConfig",
    "TELEGRAM_OUTPUT",
    "get_tts_provider",
    "is_tts_available",
    "is_tts_enabled",
    "other_provider",
    "resolve_output_format",
    "resolve_tts_api_key",
    "resolve_tts_config",
    "resolve_tts_prefs_path",
    "resolve_tts_provider_order",
]
