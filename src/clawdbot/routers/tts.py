"""Gateway RPC handlers for the ``tts.*`` methods."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Optional

import httpx

from ..config import Settings
from ..schemas.gateway import ErrorCodes
from ..services.gateway_config import load_config_for
from ..services.tts_config import (
    get_tts_provider,
    is_tts_enabled,
    other_provider,
    resolve_tts_api_key,
    resolve_tts_config,
    resolve_tts_prefs_path,
)
from ..services.tts_directives import (
    ELEVENLABS_TTS_MODELS,
    OPENAI_TTS_MODELS,
    OPENAI_TTS_VOICES,
    TTS_PROVIDERS,
)
from ..services.tts_prefs import set_tts_enabled, set_tts_provider
from ..services.tts_service import TTSService


class GatewayMethodError(Exception):
    """Raised by a handler to answer with a specific error code."""

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


@dataclass
class GatewayContext:
    settings: Settings
    http_client: Optional[httpx.AsyncClient] = None


GatewayHandler = Callable[[Dict[str, Any], GatewayContext], Awaitable[Dict[str, Any]]]


def _resolve(ctx: GatewayContext):
    gateway_config = load_config_for(ctx.settings)
    config = resolve_tts_config(gateway_config, ctx.settings)
    prefs_path = resolve_tts_prefs_path(config, ctx.settings)
    return gateway_config, config, prefs_path


def _string_param(params: Dict[str, Any], name: str) -> str:
    value = params.get(name)
    return value.strip() if isinstance(value, str) else ""


async def tts_status(params: Dict[str, Any], ctx: GatewayContext) -> Dict[str, Any]:
    _, config, prefs_path = _resolve(ctx)
    provider = get_tts_provider(config, prefs_path)
    return {
        "enabled": is_tts_enabled(config, prefs_path),
        "provider": provider,
        "fallbackProvider": other_provider(provider),
        "prefsPath": str(prefs_path),
        "hasOpenAIKey": bool(resolve_tts_api_key(config, "openai")),
        "hasElevenLabsKey": bool(resolve_tts_api_key(config, "elevenlabs")),
    }


async def tts_enable(params: Dict[str, Any], ctx: GatewayContext) -> Dict[str, Any]:
    _, _, prefs_path = _resolve(ctx)
    set_tts_enabled(prefs_path, True)
    return {"enabled": True}


async def tts_disable(params: Dict[str, Any], ctx: GatewayContext) -> Dict[str, Any]:
    _, _, prefs_path = _resolve(ctx)
    set_tts_enabled(prefs_path, False)
    return {"enabled": False}


async def tts_convert(params: Dict[str, Any], ctx: GatewayContext) -> Dict[str, Any]:
    text = _string_param(params, "text")
    if not text:
        raise GatewayMethodError(ErrorCodes.INVALID_REQUEST, "tts.convert requires text")
    channel = _string_param(params, "channel") or None

    _, config, prefs_path = _resolve(ctx)
    service = TTSService(config, http_client=ctx.http_client)
    result = await service.text_to_speech(text, prefs_path=prefs_path, channel=channel)
    if result.success and result.audio_path:
        return {
            "audioPath": result.audio_path,
            "provider": result.provider,
            "outputFormat": result.output_format,
            "voiceCompatible": result.voice_compatible,
        }
    raise GatewayMethodError(ErrorCodes.UNAVAILABLE, result.error or "TTS conversion failed")


async def tts_set_provider(params: Dict[str, Any], ctx: GatewayContext) -> Dict[str, Any]:
    provider = _string_param(params, "provider")
    if provider not in TTS_PROVIDERS:
        raise GatewayMethodError(
            ErrorCodes.INVALID_REQUEST, "Invalid provider. Use openai or elevenlabs."
        )
    _, _, prefs_path = _resolve(ctx)
    set_tts_provider(prefs_path, provider)  # type: ignore[arg-type]
    return {"provider": provider}


async def tts_providers(params: Dict[str, Any], ctx: GatewayContext) -> Dict[str, Any]:
    _, config, prefs_path = _resolve(ctx)
    return {
        "providers": [
            {
                "id": "openai",
                "name": "OpenAI",
                "configured": bool(resolve_tts_api_key(config, "openai")),
                "models": list(OPENAI_TTS_MODELS),
                "voices": list(OPENAI_TTS_VOICES),
            },
            {
                "id": "elevenlabs",
                "name": "ElevenLabs",
                "configured": bool(resolve_tts_api_key(config, "elevenlabs")),
                "models": list(ELEVENLABS_TTS_MODELS),
                "voices": [config.elevenlabs.voice_id],
            },
        ],
        "active": get_tts_provider(config, prefs_path),
    }


TTS_HANDLERS: Dict[str, GatewayHandler] = {
    "tts.status": tts_status,
    "tts.enable": tts_enable,
    "tts.disable": tts_disable,
    "tts.convert": tts_convert,
    "tts.setProvider": tts_set_provider,
    "tts.providers": tts_providers,
}


__all__ = ["GatewayContext", "GatewayHandler", "GatewayMethodError", "TTS_HANDLERS"]
