import asyncio
import logging
import shutil
import tempfile
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

import httpx

from .tts_config import (
    OutputFormat,
    ResolvedTtsConfig,
    get_tts_provider,
    resolve_output_format,
    resolve_tts_api_key,
    resolve_tts_provider_order,
)
from .tts_directives import (
    TtsOverrides,
    is_valid_openai_model,
    is_valid_openai_voice,
    is_valid_voice_id,
    normalize_apply_text_normalization,
    normalize_language_code,
    normalize_seed,
    require_in_range,
)

logger = logging.getLogger(__name__)

OPENAI_SPEECH_URL = "https://api.openai.com/v1/audio/speech"
TEMP_FILE_CLEANUP_DELAY_SECONDS = 5 * 60


class TtsProviderError(RuntimeError):
    """Raised when a vendor TTS call fails."""


@dataclass
class TtsResult:
    success: bool
    audio_path: Optional[str] = None
    error: Optional[str] = None
    latency_ms: Optional[int] = None
    provider: Optional[str] = None
    output_format: Optional[str] = None
    voice_compatible: Optional[bool] = None


def _schedule_cleanup(directory: Path, delay: float = TEMP_FILE_CLEANUP_DELAY_SECONDS) -> None:
    """Remove a temp audio dir after the channel had time to upload it."""
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        return
    loop.call_later(delay, shutil.rmtree, directory, True)


class TTSService:
    """
    Service for Text-to-Speech generation.

    Supports two providers, ElevenLabs and OpenAI, tried in fallback order.
    Uses a singleton httpx.AsyncClient for connection pooling across requests
    unless a client is injected.

    Audio is written to a temporary file whose path is handed to the channel;
    the directory is removed a few minutes later.
    """

    # Singleton HTTP client for connection pooling
    _http_client: Optional[httpx.AsyncClient] = None

    def __init__(
        self,
        config: ResolvedTtsConfig,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.config = config
        self._client = http_client

    @classmethod
    def get_http_client(cls) -> httpx.AsyncClient:
        """Get singleton HTTP client for connection pooling."""
        if cls._http_client is None:
            cls._http_client = httpx.AsyncClient(timeout=30.0)
            logger.info("Created singleton httpx.AsyncClient for TTS")
        return cls._http_client

    @classmethod
    async def close_http_client(cls) -> None:
        """Close the singleton HTTP client. Call on app shutdown."""
        if cls._http_client is not None:
            await cls._http_client.aclose()
            cls._http_client = None
            logger.info("Closed TTS HTTP client")

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client or self.get_http_client()

    @property
    def _timeout(self) -> httpx.Timeout:
        return httpx.Timeout(self.config.timeout_ms / 1000)

    async def synthesize_elevenlabs(
        self,
        text: str,
        *,
        api_key: str,
        output_format: str,
        overrides: Optional[TtsOverrides] = None,
    ) -> bytes:
        """Synthesize using ElevenLabs. Raises TtsProviderError on failure."""
        cfg = self.config.elevenlabs
        el = (overrides or TtsOverrides()).elevenlabs

        voice_id = el.voice_id or cfg.voice_id
        if not is_valid_voice_id(voice_id):
            raise TtsProviderError("Invalid voiceId format")

        voice_settings = {
            "stability": cfg.voice_settings.stability,
            "similarity_boost": cfg.voice_settings.similarity_boost,
            "style": cfg.voice_settings.style,
            "use_speaker_boost": cfg.voice_settings.use_speaker_boost,
            "speed": cfg.voice_settings.speed,
        }
        voice_settings.update(el.voice_settings.as_dict())

        try:
            require_in_range(voice_settings["stability"], 0, 1, "stability")
            require_in_range(voice_settings["similarity_boost"], 0, 1, "similarityBoost")
            require_in_range(voice_settings["style"], 0, 1, "style")
            require_in_range(voice_settings["speed"], 0.5, 2, "speed")
            seed = normalize_seed(el.seed if el.seed is not None else cfg.seed)
            normalization = normalize_apply_text_normalization(
                el.apply_text_normalization or cfg.apply_text_normalization
            )
            language_code = normalize_language_code(el.language_code or cfg.language_code)
        except ValueError as exc:
            raise TtsProviderError(str(exc)) from exc

        payload: dict = {
            "text": text,
            "model_id": el.model_id or cfg.model_id,
            "voice_settings": voice_settings,
        }
        if seed is not None:
            payload["seed"] = seed
        if normalization is not None:
            payload["apply_text_normalization"] = normalization
        if language_code is not None:
            payload["language_code"] = language_code

        headers = {
            "xi-api-key": api_key,
            "Content-Type": "application/json",
            "Accept": "audio/mpeg",
        }
        url = f"{cfg.base_url}/v1/text-to-speech/{voice_id}"

        response = await self.client.post(
            url,
            params={"output_format": output_format},
            headers=headers,
            json=payload,
            timeout=self._timeout,
        )
        if response.status_code >= 400:
            raise TtsProviderError(f"ElevenLabs API error ({response.status_code})")
        audio_data = response.content
        logger.info(f"ElevenLabs TTS synthesized {len(audio_data)} bytes for text: {text[:50]}...")
        return audio_data

    async def synthesize_openai(
        self,
        text: str,
        *,
        api_key: str,
        response_format: str,
        overrides: Optional[TtsOverrides] = None,
    ) -> bytes:
        """Synthesize using OpenAI TTS. Raises TtsProviderError on failure."""
        oa = (overrides or TtsOverrides()).openai
        model = oa.model or self.config.openai.model
        voice = oa.voice or self.config.openai.voice
        if not is_valid_openai_model(model):
            raise TtsProviderError(f"Invalid model: {model}")
        if not is_valid_openai_voice(voice):
            raise TtsProviderError(f"Invalid voice: {voice}")

        headers = {
            "Authorization": f"Bearer {api_key}",
            "Content-Type": "application/json",
        }
        payload = {
            "model": model,
            "input": text,
            "voice": voice,
            "response_format": response_format,
        }

        response = await self.client.post(
            OPENAI_SPEECH_URL,
            headers=headers,
            json=payload,
            timeout=self._timeout,
        )
        if response.status_code >= 400:
            raise TtsProviderError(f"OpenAI TTS API error ({response.status_code})")
        audio_data = response.content
        logger.info(f"OpenAI TTS synthesized {len(audio_data)} bytes for text: {text[:50]}...")
        return audio_data

    async def _synthesize(
        self,
        provider: str,
        text: str,
        api_key: str,
        output: OutputFormat,
        overrides: Optional[TtsOverrides],
    ) -> bytes:
        if provider == "elevenlabs":
            return await self.synthesize_elevenlabs(
                text, api_key=api_key, output_format=output.elevenlabs, overrides=overrides
            )
        return await self.synthesize_openai(
            text, api_key=api_key, response_format=output.openai, overrides=overrides
        )

    async def text_to_speech(
        self,
        text: str,
        *,
        prefs_path: Path,
        channel: Optional[str] = None,
        overrides: Optional[TtsOverrides] = None,
    ) -> TtsResult:
        """
        Convert text to an audio file, trying each provider once.

        Order: the directive's provider (if any) or the host's provider, then
        the other one. Providers without an API key are skipped. Never raises
        for vendor or file-write failures; the last error is reported in the result.
        """
        output = resolve_output_format(channel)
        if len(text) > self.config.max_text_length:
            return TtsResult(
                success=False,
                error=f"Text too long ({len(text)} chars, max {self.config.max_text_length})",
            )

        primary = (overrides.provider if overrides else None) or get_tts_provider(
            self.config, prefs_path
        )
        last_error: Optional[str] = None

        for provider in resolve_tts_provider_order(primary):
            api_key = resolve_tts_api_key(self.config, provider)
            if not api_key:
                # Vendor errors take precedence over missing keys in the report.
                last_error = last_error or f"No API key for {provider}"
                continue

            started = time.monotonic()
            try:
                audio = await self._synthesize(provider, text, api_key, output, overrides)
            except httpx.TimeoutException:
                last_error = f"{provider}: request timed out"
                logger.warning(f"TTS {last_error}")
                continue
            except (TtsProviderError, httpx.HTTPError) as exc:
                last_error = f"{provider}: {exc}"
                logger.warning(f"TTS {last_error}")
                continue

            latency_ms = int((time.monotonic() - started) * 1000)
            temp_dir: Optional[Path] = None
            try:
                temp_dir = Path(tempfile.mkdtemp(prefix="tts-"))
                audio_path = temp_dir / f"voice-{int(time.time() * 1000)}{output.extension}"
                audio_path.write_bytes(audio)
            except OSError as exc:
                if temp_dir is not None:
                    shutil.rmtree(temp_dir, ignore_errors=True)
                # Local disk trouble would hit the other provider too.
                last_error = f"failed to write audio file: {exc}"
                logger.warning(f"TTS {last_error}")
                break
            _schedule_cleanup(temp_dir)

            return TtsResult(
                success=True,
                audio_path=str(audio_path),
                latency_ms=latency_ms,
                provider=provider,
                output_format=output.openai if provider == "openai" else output.elevenlabs,
                voice_compatible=output.voice_compatible,
            )

        return TtsResult(
            success=False,
            error=f"TTS conversion failed: {last_error or 'no providers available'}",
        )


__all__ = ["TTSService", "TtsProviderError", "TtsResult"]
