"""Handler for the ``/tts`` chat command."""

from __future__ import annotations

import logging
import time
from typing import Optional

import httpx

from ..config import Settings
from ..schemas.gateway_config import GatewayConfig
from ..schemas.tts import TTS_LIMIT_MAX, TTS_LIMIT_MIN, ReplyPayload
from .auto_tts import get_last_tts_attempt
from .tts_config import (
    ResolvedTtsConfig,
    get_tts_provider,
    is_tts_enabled,
    resolve_tts_api_key,
    resolve_tts_config,
    resolve_tts_prefs_path,
)
from .tts_directives import TTS_PROVIDERS
from .tts_prefs import (
    get_tts_max_length,
    is_summarization_enabled,
    set_summarization_enabled,
    set_tts_enabled,
    set_tts_max_length,
    set_tts_provider,
)
from .tts_service import TTSService

logger = logging.getLogger(__name__)

COMMAND = "/tts"

HELP_TEXT = """🔊 TTS (text-to-speech)

Commands:
• /tts on: speak replies automatically
• /tts off: stop speaking replies
• /tts status: show current settings
• /tts provider [openai|elevenlabs]: show or change the provider
• /tts limit [100-10000]: show or change the length that triggers a summary
• /tts summary [on|off]: show or change auto-summary of long replies
• /tts audio <text>: speak the given text once

Replies longer than the limit are summarized before they are spoken when
auto-summary is on; otherwise they are sent as text only."""

_ON_VALUES = ("on", "enable", "true", "1")
_OFF_VALUES = ("off", "disable", "false", "0")


def _reply(text: str) -> ReplyPayload:
    return ReplyPayload(text=text)


def _key_status(config: ResolvedTtsConfig, provider: str) -> str:
    return "✅ configured" if resolve_tts_api_key(config, provider) else "❌ not configured"


def _format_status(config: ResolvedTtsConfig, prefs_path) -> str:
    provider = get_tts_provider(config, prefs_path)
    lines = [
        "📊 TTS status",
        f"State: {'✅ enabled' if is_tts_enabled(config, prefs_path) else '❌ disabled'}",
        f"Provider: {provider} ({_key_status(config, provider)})",
        f"Text limit: {get_tts_max_length(prefs_path)} chars",
        f"Auto-summary: {'on' if is_summarization_enabled(prefs_path) else 'off'}",
    ]
    attempt = get_last_tts_attempt()
    if attempt is not None:
        age = max(0, int(time.time() - attempt.timestamp))
        lines.append(
            f"Last attempt ({age}s ago): {'✅ success' if attempt.success else '❌ failed'}"
        )
        lines.append(
            f"Text: {attempt.text_length} chars{' (summarized)' if attempt.summarized else ''}"
        )
        if attempt.success:
            lines.append(f"Provider: {attempt.provider}")
            lines.append(f"Latency: {attempt.latency_ms}ms")
        elif attempt.error:
            lines.append(f"Error: {attempt.error}")
    return "\n".join(lines)


async def handle_tts_command(
    text: str,
    *,
    settings: Settings,
    gateway_config: Optional[GatewayConfig] = None,
    channel: Optional[str] = None,
    http_client: Optional[httpx.AsyncClient] = None,
) -> Optional[ReplyPayload]:
    """Run a ``/tts`` command; returns None when ``text`` is not one."""

    normalized = text.strip()
    head, _, rest = normalized.partition(" ")
    if head.lower() != COMMAND:
        return None

    action, _, arg = rest.strip().partition(" ")
    action = action.lower()
    arg = arg.strip()

    config = resolve_tts_config(gateway_config, settings)
    prefs_path = resolve_tts_prefs_path(config, settings)

    if not action or action == "help":
        return _reply(HELP_TEXT)

    if action in _ON_VALUES:
        set_tts_enabled(prefs_path, True)
        return _reply("🔊 TTS enabled.")

    if action in _OFF_VALUES:
        set_tts_enabled(prefs_path, False)
        return _reply("🔇 TTS disabled.")

    if action == "status":
        return _reply(_format_status(config, prefs_path))

    if action == "provider":
        if not arg:
            current = get_tts_provider(config, prefs_path)
            return _reply(
                f"🎙️ TTS provider: {current}\n"
                f"OpenAI key: {_key_status(config, 'openai')}\n"
                f"ElevenLabs key: {_key_status(config, 'elevenlabs')}\n"
                "Usage: /tts provider openai | elevenlabs"
            )
        provider = arg.lower()
        if provider not in TTS_PROVIDERS:
            return _reply("Usage: /tts provider openai | elevenlabs")
        set_tts_provider(prefs_path, provider)  # type: ignore[arg-type]
        return _reply(f"✅ TTS provider set to {provider}.")

    if action == "limit":
        if not arg:
            return _reply(f"📏 TTS limit: {get_tts_max_length(prefs_path)} characters.")
        try:
            limit = int(arg)
        except ValueError:
            limit = None
        if limit is None or limit < TTS_LIMIT_MIN or limit > TTS_LIMIT_MAX:
            return _reply(
                f"❌ Limit must be between {TTS_LIMIT_MIN} and {TTS_LIMIT_MAX} characters."
            )
        set_tts_max_length(prefs_path, limit)
        return _reply(f"✅ TTS limit set to {limit} characters.")

    if action == "summary":
        if not arg:
            state = "on" if is_summarization_enabled(prefs_path) else "off"
            return _reply(f"📝 TTS auto-summary: {state}.")
        value = arg.lower()
        if value in _ON_VALUES:
            set_summarization_enabled(prefs_path, True)
            return _reply("✅ TTS auto-summary enabled.")
        if value in _OFF_VALUES:
            set_summarization_enabled(prefs_path, False)
            return _reply("❌ TTS auto-summary disabled.")
        return _reply("Usage: /tts summary on | off")

    if action == "audio":
        if not arg:
            return _reply(
                "🎤 Generate audio from text.\n\n"
                "Usage: /tts audio <text>\n"
                "Example: /tts audio Hello, this is a test!"
            )
        service = TTSService(config, http_client=http_client)
        result = await service.text_to_speech(arg, prefs_path=prefs_path, channel=channel)
        if result.success and result.audio_path:
            return ReplyPayload(
                media_url=result.audio_path,
                audio_as_voice=bool(result.voice_compatible),
            )
        logger.warning(f"/tts audio failed: {result.error}")
        return _reply(f"❌ Error generating audio: {result.error or 'unknown error'}")

    return _reply(HELP_TEXT)


__all__ = ["COMMAND", "HELP_TEXT", "handle_tts_command"]
