"""TTS preference and outbound reply schemas."""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from .gateway_config import TtsProviderId

TTS_LIMIT_MIN = 100
TTS_LIMIT_MAX = 10_000

ReplyKind = Literal["tool", "block", "final"]


class TtsPrefs(BaseModel):
    """Per-host overrides written by the ``/tts`` command and ``tts.*`` methods."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    enabled: Optional[bool] = None
    provider: Optional[TtsProviderId] = None
    max_length: Optional[int] = Field(
        default=None,
        ge=TTS_LIMIT_MIN,
        le=TTS_LIMIT_MAX,
        description="Reply length above which the text is summarized before synthesis.",
    )
    summarize: Optional[bool] = None


class TtsPrefsFile(BaseModel):
    """On-disk layout of the preferences file."""

    model_config = ConfigDict(extra="allow")

    tts: TtsPrefs = Field(default_factory=TtsPrefs)


class ReplyPayload(BaseModel):
    """An outbound reply as handed to a channel adapter."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    text: Optional[str] = None
    media_url: Optional[str] = None
    media_urls: Optional[List[str]] = None
    audio_as_voice: Optional[bool] = None

    @property
    def has_media(self) -> bool:
        return bool(self.media_url) or bool(self.media_urls)


class PrepareReplyRequest(BaseModel):
    payload: ReplyPayload
    channel: Optional[str] = None
    kind: ReplyKind = "final"


class CommandRequest(BaseModel):
    text: str
    channel: Optional[str] = None


class CommandResponse(BaseModel):
    handled: bool
    reply: Optional[ReplyPayload] = None


__all__ = [
    "CommandRequest",
    "CommandResponse",
    "PrepareReplyRequest",
    "ReplyKind",
    "ReplyPayload",
    "TTS_LIMIT_MAX",
    "TTS_LIMIT_MIN",
    "TtsPrefs",
    "TtsPrefsFile",
]
