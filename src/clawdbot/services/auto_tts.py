"""Decide per outbound reply whether to attach synthesized audio.

Audio is best-effort: every failure path returns the (directive-cleaned)
text reply unchanged.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import httpx

from ..config import Settings
from ..schemas.gateway_config import GatewayConfig
from ..schemas.tts import TTS_LIMIT_MIN, ReplyKind, ReplyPayload
from .summarizer import SummarizationError, has_summary_credentials, summarize_text
from .tts_config import is_tts_enabled, resolve_tts_config, resolve_tts_prefs_path
from .tts_directives import parse_tts_directives
from .tts_prefs import get_tts_max_length, is_summarization_enabled
from .tts_service import TTSService

logger = logging.getLogger(__name__)

MIN_TTS_TEXT_LENGTH = 10
MEDIA_MARKER = "MEDIA:"


class AutoTtsDecision(str, Enum):
    SKIP_EMPTY = "skip_empty"
    SKIP_MEDIA = "skip_media"
    SKIP_SHORT = "skip_short"
    WITHIN_LIMIT = "within_limit"
    OVER_LIMIT_NO_SUMMARY = "over_limit_no_summary"
    OVER_LIMIT_SUMMARIZE = "over_limit_summarize"

    @property
    def synthesizes(self) -> bool:
        return self in (AutoTtsDecision.WITHIN_LIMIT, AutoTtsDecision.OVER_LIMIT_SUMMARIZE)


def decide_auto_tts(
    *,
    text: str,
    has_media: bool,
    max_length: int,
    summarize_enabled: bool,
    summary_available: bool,
) -> AutoTtsDecision:
    """Pure decision over the speakable text of one reply."""

    speakable = text.strip()
    if not speakable:
        return AutoTtsDecision.SKIP_EMPTY
    if has_media:
        return AutoTtsDecision.SKIP_MEDIA
    if len(speakable) < MIN_TTS_TEXT_LENGTH:
        return AutoTtsDecision.SKIP_SHORT
    if len(speakable) <= max_length:
        return AutoTtsDecision.WITHIN_LIMIT
    if not summarize_enabled or not summary_available:
        return AutoTtsDecision.OVER_LIMIT_NO_SUMMARY
    return AutoTtsDecision.OVER_LIMIT_SUMMARIZE


@dataclass(frozen=True)
class TtsAttempt:
    timestamp: float
    success: bool
    text_length: int
    summarized: bool
    provider: Optional[str] = None
    latency_ms: Optional[int] = None
    error: Optional[str] = None


_last_attempt: Optional[TtsAttempt] = None


def get_last_tts_attempt() -> Optional[TtsAttempt]:
    return _last_attempt


def set_last_tts_attempt(attempt: Optional[TtsAttempt]) -> None:
    global _last_attempt
    _last_attempt = attempt


async def maybe_apply_tts_to_payload(
    payload: ReplyPayload,
    *,
    settings: Settings,
    gateway_config: Optional[GatewayConfig] = None,
    channel: Optional[str] = None,
    kind: Optional[ReplyKind] = "final",
    http_client: Optional[httpx.AsyncClient] = None,
) -> ReplyPayload:
    """Return the reply to send, with audio attached when the gate allows it."""

    config = resolve_tts_config(gateway_config, settings)
    prefs_path = resolve_tts_prefs_path(config, settings)

    if not is_tts_enabled(config, prefs_path):
        return payload
    if config.mode == "final" and kind and kind != "final":
        return payload

    text = payload.text or ""
    directives = parse_tts_directives(text, config.model_overrides)
    if directives.warnings:
        logger.info(f"TTS: ignored directive overrides ({'; '.join(directives.warnings)})")

    visible_text = directives.cleaned_text.strip()
    tts_text = (directives.tts_text or "").strip() or visible_text

    next_payload = payload
    if visible_text != text.strip():
        next_payload = payload.model_copy(update={"text": visible_text or None})

    # The vendor hard cap also bounds the summary threshold.
    max_length = max(
        TTS_LIMIT_MIN, min(get_tts_max_length(prefs_path), config.max_text_length)
    )
    summarize_enabled = is_summarization_enabled(prefs_path)
    decision = decide_auto_tts(
        text=tts_text,
        has_media=payload.has_media or MEDIA_MARKER in text,
        max_length=max_length,
        summarize_enabled=summarize_enabled,
        # Credentials are only checked for over-limit text.
        summary_available=(
            summarize_enabled
            and len(tts_text) > max_length
            and has_summary_credentials(gateway_config, config, settings)
        ),
    )
    if not decision.synthesizes:
        if decision is AutoTtsDecision.OVER_LIMIT_NO_SUMMARY:
            logger.info(
                f"TTS: skipping long text ({len(tts_text)} > {max_length}), "
                "summarization disabled or unavailable"
            )
        else:
            logger.debug(f"TTS: {decision.value}")
        return next_payload

    text_for_audio = tts_text
    was_summarized = False
    if decision is AutoTtsDecision.OVER_LIMIT_SUMMARIZE:
        try:
            summary = await summarize_text(
                text=text_for_audio,
                target_length=max_length,
                gateway_config=gateway_config,
                config=config,
                settings=settings,
                timeout_ms=config.timeout_ms,
                http_client=http_client,
            )
        except (SummarizationError, ValueError) as exc:
            logger.warning(f"TTS: summarization failed: {exc}")
            return next_payload
        text_for_audio = summary.summary
        was_summarized = True
        if len(text_for_audio) > config.max_text_length:
            logger.info(
                f"TTS: summary exceeded hard limit ({len(text_for_audio)} > "
                f"{config.max_text_length}); truncating"
            )
            text_for_audio = f"{text_for_audio[: config.max_text_length - 3]}..."

    started = time.monotonic()
    service = TTSService(config, http_client=http_client)
    result = await service.text_to_speech(
        text_for_audio,
        prefs_path=prefs_path,
        channel=channel,
        overrides=directives.overrides,
    )

    if result.success and result.audio_path:
        set_last_tts_attempt(
            TtsAttempt(
                timestamp=time.time(),
                success=True,
                text_length=len(tts_text),
                summarized=was_summarized,
                provider=result.provider,
                latency_ms=result.latency_ms,
            )
        )
        should_voice = (channel or "").strip().lower() == "telegram" and bool(
            result.voice_compatible
        )
        return next_payload.model_copy(
            update={
                "media_url": result.audio_path,
                "audio_as_voice": should_voice or bool(payload.audio_as_voice),
            }
        )

    set_last_tts_attempt(
        TtsAttempt(
            timestamp=time.time(),
            success=False,
            text_length=len(tts_text),
            summarized=was_summarized,
            error=result.error,
        )
    )
    latency_ms = int((time.monotonic() - started) * 1000)
    logger.warning(f"TTS: conversion failed after {latency_ms}ms ({result.error or 'unknown'})")
    return next_payload


__all__ = [
    "AutoTtsDecision",
    "MIN_TTS_TEXT_LENGTH",
    "TtsAttempt",
    "decide_auto_tts",
    "get_last_tts_attempt",
    "maybe_apply_tts_to_payload",
    "set_last_tts_attempt",
]
