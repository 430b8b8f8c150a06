"""Pydantic models for the gateway JSON config file (``clawdbot.json``).

Only the sections the TTS pipeline consumes are modelled; unknown keys are
ignored so the same file can carry channel and plugin configuration.
"""

from __future__ import annotations

from typing import Dict, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

TtsProviderId = Literal["openai", "elevenlabs"]
TtsMode = Literal["final", "all"]
TextNormalization = Literal["auto", "on", "off"]


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
        protected_namespaces=(),
    )


class ElevenLabsVoiceSettingsConfig(_CamelModel):
    stability: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    similarity_boost: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    style: Optional[float] = Field(default=None, ge=0.0, le=1.0)
    use_speaker_boost: Optional[bool] = None
    speed: Optional[float] = Field(default=None, ge=0.5, le=2.0)


class ElevenLabsConfig(_CamelModel):
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    voice_id: Optional[str] = None
    model_id: Optional[str] = None
    seed: Optional[int] = Field(default=None, ge=0, le=4294967295)
    apply_text_normalization: Optional[TextNormalization] = None
    language_code: Optional[str] = None
    voice_settings: ElevenLabsVoiceSettingsConfig = Field(
        default_factory=ElevenLabsVoiceSettingsConfig
    )


class OpenAITtsConfig(_CamelModel):
    api_key: Optional[str] = None
    model: Optional[str] = None
    voice: Optional[str] = None


class ModelOverridesConfig(_CamelModel):
    """Which directive fields the model may control (all allowed when omitted)."""

    enabled: Optional[bool] = None
    allow_text: Optional[bool] = None
    allow_provider: Optional[bool] = None
    allow_voice: Optional[bool] = None
    allow_model_id: Optional[bool] = None
    allow_voice_settings: Optional[bool] = None
    allow_normalization: Optional[bool] = None
    allow_seed: Optional[bool] = None


class TtsFileConfig(_CamelModel):
    """``messages.tts`` section."""

    enabled: Optional[bool] = None
    mode: Optional[TtsMode] = None
    provider: Optional[TtsProviderId] = None
    summary_model: Optional[str] = None
    max_text_length: Optional[int] = Field(default=None, ge=1)
    timeout_ms: Optional[int] = Field(default=None, ge=1)
    prefs_path: Optional[str] = None
    model_overrides: Optional[ModelOverridesConfig] = None
    openai: OpenAITtsConfig = Field(default_factory=OpenAITtsConfig)
    elevenlabs: ElevenLabsConfig = Field(default_factory=ElevenLabsConfig)


class MessagesConfig(_CamelModel):
    tts: TtsFileConfig = Field(default_factory=TtsFileConfig)


class AgentModelConfig(_CamelModel):
    primary: Optional[str] = None


class AgentDefaultsConfig(_CamelModel):
    model: AgentModelConfig = Field(default_factory=AgentModelConfig)


class AgentsConfig(_CamelModel):
    defaults: AgentDefaultsConfig = Field(default_factory=AgentDefaultsConfig)


class ModelProviderConfig(_CamelModel):
    """OpenAI-compatible endpoint used to reach a model provider."""

    base_url: Optional[str] = None
    api_key: Optional[str] = None


class ModelsConfig(_CamelModel):
    providers: Dict[str, ModelProviderConfig] = Field(default_factory=dict)


class GatewayConfig(_CamelModel):
    agents: AgentsConfig = Field(default_factory=AgentsConfig)
    models: ModelsConfig = Field(default_factory=ModelsConfig)
    messages: MessagesConfig = Field(default_factory=MessagesConfig)


__all__ = [
    "AgentsConfig",
    "ElevenLabsConfig",
    "ElevenLabsVoiceSettingsConfig",
    "GatewayConfig",
    "MessagesConfig",
    "ModelOverridesConfig",
    "ModelProviderConfig",
    "ModelsConfig",
    "OpenAITtsConfig",
    "TextNormalization",
    "TtsFileConfig",
    "TtsMode",
    "TtsProviderId",
]
