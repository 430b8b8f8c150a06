import json
import pathlib
import sys

import pytest

PROJECT_ROOT = pathlib.Path(__file__).resolve().parents[1]
SRC_DIR = PROJECT_ROOT / "src"
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))
if str(SRC_DIR) not in sys.path:
    sys.path.insert(0, str(SRC_DIR))

from clawdbot.config import Settings  # noqa: E402
from clawdbot.services.auto_tts import set_last_tts_attempt  # noqa: E402

_ENV_KEYS = (
    "OPENAI_API_KEY",
    "ELEVENLABS_API_KEY",
    "XI_API_KEY",
    "OPENROUTER_API_KEY",
    "CLAWDBOT_STATE_DIR",
    "CLAWDBOT_CONFIG_PATH",
    "CLAWDBOT_TTS_PREFS",
)


@pytest.fixture(autouse=True)
def isolated_env(monkeypatch):
    """Keep host credentials and the last-attempt record out of tests."""
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    set_last_tts_attempt(None)
    yield
    set_last_tts_attempt(None)


@pytest.fixture
def make_settings(tmp_path):
    def _make(**overrides) -> Settings:
        overrides.setdefault("state_dir", tmp_path / "state")
        return Settings(_env_file=None, **overrides)

    return _make


@pytest.fixture
def write_config():
    """Write a gateway config file for the given settings."""

    def _write(settings: Settings, data: dict) -> pathlib.Path:
        path = settings.resolved_config_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    return _write
