"""Tests for the /tts chat command."""

from __future__ import annotations

import httpx
import pytest

from clawdbot.services.auto_tts import TtsAttempt, set_last_tts_attempt
from clawdbot.services.tts_commands import HELP_TEXT, handle_tts_command
from clawdbot.services.tts_prefs import (
    get_prefs_provider,
    get_tts_max_length,
    is_summarization_enabled,
    is_tts_enabled,
)


def _prefs(settings):
    return settings.resolved_state_dir / "settings" / "tts.json"


async def _run(settings, text, handler=None, **kwargs):
    if handler is None:
        return await handle_tts_command(text, settings=settings, **kwargs)
    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        return await handle_tts_command(text, settings=settings, http_client=client, **kwargs)


@pytest.mark.asyncio
@pytest.mark.parametrize("text", ["hello", "/ttsx on", "/help", ""])
async def test_other_text_is_not_handled(make_settings, text):
    assert await _run(make_settings(), text) is None


@pytest.mark.asyncio
@pytest.mark.parametrize("text", ["/tts", "/tts help", "/TTS  help", "/tts bogus"])
async def test_help(make_settings, text):
    reply = await _run(make_settings(), text)

    assert reply.text == HELP_TEXT


@pytest.mark.asyncio
async def test_on_and_off(make_settings):
    settings = make_settings()

    reply = await _run(settings, "/tts on")
    assert reply.text == "🔊 TTS enabled."
    assert is_tts_enabled(_prefs(settings), default=False) is True

    reply = await _run(settings, "/tts off")
    assert reply.text == "🔇 TTS disabled."
    assert is_tts_enabled(_prefs(settings), default=True) is False


@pytest.mark.asyncio
async def test_provider(make_settings):
    settings = make_settings(openai_api_key="sk")

    reply = await _run(settings, "/tts provider")
    assert "TTS provider: openai" in reply.text
    assert "ElevenLabs key: ❌ not configured" in reply.text

    reply = await _run(settings, "/tts provider ElevenLabs")
    assert reply.text == "✅ TTS provider set to elevenlabs."
    assert get_prefs_provider(_prefs(settings)) == "elevenlabs"

    reply = await _run(settings, "/tts provider acme")
    assert reply.text == "Usage: /tts provider openai | elevenlabs"
    assert get_prefs_provider(_prefs(settings)) == "elevenlabs"


@pytest.mark.asyncio
@pytest.mark.parametrize("value", ["99", "10001", "abc", "-5"])
async def test_limit_rejects_out_of_range(make_settings, value):
    settings = make_settings()

    reply = await _run(settings, f"/tts limit {value}")

    assert reply.text == "❌ Limit must be between 100 and 10000 characters."
    assert not _prefs(settings).exists()


@pytest.mark.asyncio
@pytest.mark.parametrize("value", [100, 2000, 10000])
async def test_limit_accepts_bounds(make_settings, value):
    settings = make_settings()

    reply = await _run(settings, f"/tts limit {value}")

    assert reply.text == f"✅ TTS limit set to {value} characters."
    assert get_tts_max_length(_prefs(settings)) == value


@pytest.mark.asyncio
async def test_limit_shows_current(make_settings):
    reply = await _run(make_settings(), "/tts limit")

    assert reply.text == "📏 TTS limit: 1500 characters."


@pytest.mark.asyncio
async def test_summary_toggle(make_settings):
    settings = make_settings()

    assert (await _run(settings, "/tts summary")).text == "📝 TTS auto-summary: on."
    assert (await _run(settings, "/tts summary off")).text == "❌ TTS auto-summary disabled."
    assert is_summarization_enabled(_prefs(settings)) is False
    assert (await _run(settings, "/tts summary on")).text == "✅ TTS auto-summary enabled."
    assert (await _run(settings, "/tts summary maybe")).text == "Usage: /tts summary on | off"


@pytest.mark.asyncio
async def test_status_includes_last_attempt(make_settings):
    settings = make_settings(elevenlabs_api_key="xi")
    set_last_tts_attempt(
        TtsAttempt(
            timestamp=0,
            success=False,
            text_length=42,
            summarized=True,
            error="TTS conversion failed: boom",
        )
    )

    reply = await _run(settings, "/tts status")

    assert "State: ❌ disabled" in reply.text
    assert "Provider: elevenlabs (✅ configured)" in reply.text
    assert "Text limit: 1500 chars" in reply.text
    assert "Text: 42 chars (summarized)" in reply.text
    assert "Error: TTS conversion failed: boom" in reply.text


@pytest.mark.asyncio
async def test_audio_returns_media(make_settings):
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(200, content=b"audio")

    reply = await _run(
        make_settings(openai_api_key="sk"),
        "/tts audio Hello from the command line",
        handler,
        channel="telegram",
    )

    assert reply.text is None
    assert reply.media_url.endswith(".opus")
    assert reply.audio_as_voice is True


@pytest.mark.asyncio
async def test_audio_failure_is_reported(make_settings):
    reply = await _run(make_settings(), "/tts audio Hello there")

    assert reply.text.startswith("❌ Error generating audio: TTS conversion failed")


@pytest.mark.asyncio
async def test_audio_without_text_shows_usage(make_settings):
    reply = await _run(make_settings(), "/tts audio")

    assert "Usage: /tts audio <text>" in reply.text
