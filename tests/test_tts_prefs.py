"""Tests for the per-host TTS preferences file."""

import json

from clawdbot.services.tts_prefs import (
    TtsPrefsStore,
    get_prefs_provider,
    get_tts_max_length,
    is_summarization_enabled,
    is_tts_enabled,
    set_summarization_enabled,
    set_tts_enabled,
    set_tts_max_length,
    set_tts_provider,
)


def test_defaults_when_file_missing(tmp_path):
    prefs = tmp_path / "settings" / "tts.json"

    assert is_tts_enabled(prefs, default=True) is True
    assert is_tts_enabled(prefs, default=False) is False
    assert get_prefs_provider(prefs) is None
    assert get_tts_max_length(prefs) == 1500
    assert is_summarization_enabled(prefs) is True
    assert not prefs.exists()


def test_setters_persist_nested_camel_case(tmp_path):
    prefs = tmp_path / "settings" / "tts.json"

    set_tts_enabled(prefs, True)
    set_tts_provider(prefs, "openai")
    set_tts_max_length(prefs, 2500)
    set_summarization_enabled(prefs, False)

    data = json.loads(prefs.read_text(encoding="utf-8"))
    assert data == {
        "tts": {
            "enabled": True,
            "provider": "openai",
            "maxLength": 2500,
            "summarize": False,
        }
    }
    assert get_tts_max_length(prefs) == 2500
    assert is_summarization_enabled(prefs) is False


def test_update_preserves_other_fields_and_unknown_sections(tmp_path):
    prefs = tmp_path / "tts.json"
    prefs.write_text(json.dumps({"tts": {"provider": "elevenlabs"}, "other": {"x": 1}}))

    set_tts_enabled(prefs, False)

    data = json.loads(prefs.read_text(encoding="utf-8"))
    assert data["tts"] == {"enabled": False, "provider": "elevenlabs"}
    assert data["other"] == {"x": 1}


def test_write_leaves_no_temp_files(tmp_path):
    prefs = tmp_path / "tts.json"

    set_tts_enabled(prefs, True)
    set_tts_enabled(prefs, False)

    assert sorted(p.name for p in tmp_path.iterdir()) == ["tts.json"]


def test_corrupt_file_falls_back_to_defaults(tmp_path):
    prefs = tmp_path / "tts.json"
    prefs.write_text("{not json")

    assert is_tts_enabled(prefs, default=False) is False
    assert get_tts_max_length(prefs) == 1500

    # The next write replaces the broken file.
    set_tts_max_length(prefs, 300)
    assert get_tts_max_length(prefs) == 300


def test_out_of_range_value_on_disk_is_ignored(tmp_path):
    prefs = tmp_path / "tts.json"
    prefs.write_text(json.dumps({"tts": {"maxLength": 5}}))

    assert TtsPrefsStore(prefs).read().max_length is None
    assert get_tts_max_length(prefs) == 1500


def test_invalid_tts_section_keeps_other_sections_on_rewrite(tmp_path):
    prefs = tmp_path / "tts.json"
    prefs.write_text(json.dumps({"tts": {"maxLength": 5}, "other": {"x": 1}}))

    set_tts_enabled(prefs, True)

    data = json.loads(prefs.read_text(encoding="utf-8"))
    assert data == {"tts": {"enabled": True}, "other": {"x": 1}}


def test_non_object_file_falls_back_to_defaults(tmp_path):
    prefs = tmp_path / "tts.json"
    prefs.write_text("[1, 2, 3]")

    assert get_tts_max_length(prefs) == 1500
    assert get_prefs_provider(prefs) is None
