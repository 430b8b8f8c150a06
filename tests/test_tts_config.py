"""Tests for TTS config resolution, provider selection and output formats."""

from clawdbot.schemas.gateway_config import GatewayConfig
from clawdbot.services.tts_config import (
    DEFAULT_OUTPUT,
    TELEGRAM_OUTPUT,
    get_tts_provider,
    is_tts_available,
    is_tts_enabled,
    resolve_output_format,
    resolve_tts_config,
    resolve_tts_prefs_path,
    resolve_tts_provider_order,
)
from clawdbot.services.tts_prefs import set_tts_enabled, set_tts_provider


def _config(tts: dict) -> GatewayConfig:
    return GatewayConfig.model_validate({"messages": {"tts": tts}})


def test_output_format_by_channel():
    assert resolve_output_format("telegram") is TELEGRAM_OUTPUT
    assert resolve_output_format(" Telegram ") is TELEGRAM_OUTPUT
    assert resolve_output_format("discord") is DEFAULT_OUTPUT
    assert resolve_output_format(None) is DEFAULT_OUTPUT
    assert TELEGRAM_OUTPUT.elevenlabs == "opus_48000_64"
    assert TELEGRAM_OUTPUT.voice_compatible is True
    assert DEFAULT_OUTPUT.openai == "mp3"
    assert DEFAULT_OUTPUT.voice_compatible is False


def test_defaults_without_config(make_settings):
    config = resolve_tts_config(None, make_settings())

    assert config.enabled is False
    assert config.mode == "final"
    assert config.provider == "elevenlabs"
    assert config.max_text_length == 4096
    assert config.timeout_ms == 30000
    assert config.elevenlabs.voice_id == "pMsXgVXv3BLzUgSXRplE"
    assert config.elevenlabs.voice_settings.similarity_boost == 0.75
    assert config.openai.voice == "alloy"
    assert config.elevenlabs.api_key is None


def test_file_config_keys_win_over_environment(make_settings):
    settings = make_settings(openai_api_key="sk-env", elevenlabs_api_key="xi-env")
    gateway_config = _config(
        {
            "provider": "openai",
            "openai": {"apiKey": "sk-file", "voice": "nova"},
            "elevenlabs": {"baseUrl": "https://eu.elevenlabs.io/", "voiceSettings": {"speed": 1.2}},
            "maxTextLength": 2000,
        }
    )

    config = resolve_tts_config(gateway_config, settings)

    assert config.openai.api_key == "sk-file"
    assert config.openai.voice == "nova"
    assert config.elevenlabs.api_key == "xi-env"
    assert config.elevenlabs.base_url == "https://eu.elevenlabs.io"
    assert config.elevenlabs.voice_settings.speed == 1.2
    assert config.elevenlabs.voice_settings.stability == 0.5
    assert config.max_text_length == 2000


def test_blank_keys_count_as_missing(make_settings):
    settings = make_settings(openai_api_key="   ")
    config = resolve_tts_config(_config({"elevenlabs": {"apiKey": ""}}), settings)

    assert config.openai.api_key is None
    assert config.elevenlabs.api_key is None
    assert is_tts_available(config) is False


def test_prefs_path_precedence(make_settings, tmp_path):
    settings = make_settings(tts_prefs_path=tmp_path / "env.json")

    from_file = resolve_tts_config(_config({"prefsPath": str(tmp_path / "file.json")}), settings)
    assert resolve_tts_prefs_path(from_file, settings) == tmp_path / "file.json"

    from_env = resolve_tts_config(None, settings)
    assert resolve_tts_prefs_path(from_env, settings) == tmp_path / "env.json"

    default_settings = make_settings()
    default = resolve_tts_config(None, default_settings)
    assert resolve_tts_prefs_path(default, default_settings) == (
        tmp_path / "state" / "settings" / "tts.json"
    )


def test_prefs_enabled_overrides_config(make_settings, tmp_path):
    prefs = tmp_path / "tts.json"
    config = resolve_tts_config(_config({"enabled": True}), make_settings())

    assert is_tts_enabled(config, prefs) is True
    set_tts_enabled(prefs, False)
    assert is_tts_enabled(config, prefs) is False


def test_provider_prefers_prefs_then_config(make_settings, tmp_path):
    prefs = tmp_path / "tts.json"
    settings = make_settings(openai_api_key="sk", elevenlabs_api_key="xi")
    config = resolve_tts_config(_config({"provider": "openai"}), settings)

    assert get_tts_provider(config, prefs) == "openai"
    set_tts_provider(prefs, "elevenlabs")
    assert get_tts_provider(config, prefs) == "elevenlabs"


def test_provider_swaps_when_only_other_has_key(make_settings, tmp_path):
    prefs = tmp_path / "tts.json"
    config = resolve_tts_config(None, make_settings(openai_api_key="sk"))

    assert config.provider == "elevenlabs"
    assert get_tts_provider(config, prefs) == "openai"


def test_provider_kept_when_no_keys(make_settings, tmp_path):
    config = resolve_tts_config(None, make_settings())

    assert get_tts_provider(config, tmp_path / "tts.json") == "elevenlabs"


def test_provider_order():
    assert resolve_tts_provider_order("openai") == ["openai", "elevenlabs"]
    assert resolve_tts_provider_order("elevenlabs") == ["elevenlabs", "openai"]


def test_config_is_reread_per_call(make_settings, write_config):
    settings = make_settings()
    from clawdbot.services.gateway_config import load_config_for

    write_config(settings, {"messages": {"tts": {"provider": "openai"}}})
    assert resolve_tts_config(load_config_for(settings), settings).provider == "openai"

    write_config(settings, {"messages": {"tts": {"provider": "elevenlabs"}}})
    assert resolve_tts_config(load_config_for(settings), settings).provider == "elevenlabs"
