"""Per-host TTS preferences persisted as a small JSON file."""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Optional

from pydantic import ValidationError

from ..schemas.gateway_config import TtsProviderId
from ..schemas.tts import TtsPrefs, TtsPrefsFile

logger = logging.getLogger(__name__)

DEFAULT_TTS_MAX_LENGTH = 1500
DEFAULT_TTS_SUMMARIZE = True


class TtsPrefsStore:
    """Read/write interface over the preferences file.

    The file is read fresh on every call and rewritten in full on every
    mutation. There is no locking; concurrent writers race and the last write
    wins.
    """

    def __init__(self, path: Path):
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _load(self) -> TtsPrefsFile:
        if not self._path.exists():
            return TtsPrefsFile()
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, ValueError) as e:
            logger.warning(f"Failed to load TTS prefs from {self._path}: {e}, using defaults")
            return TtsPrefsFile()
        if not isinstance(data, dict):
            logger.warning(f"TTS prefs in {self._path} are not an object, using defaults")
            return TtsPrefsFile()
        try:
            return TtsPrefsFile.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Invalid TTS prefs in {self._path}: {e}, using defaults")
            # Other sections of the file survive the next rewrite.
            others = {key: value for key, value in data.items() if key != "tts"}
            return TtsPrefsFile.model_validate(others)

    def read(self) -> TtsPrefs:
        """Return the stored preferences (unset fields are None)."""
        return self._load().tts

    def update(self, **fields: Any) -> TtsPrefs:
        """Set the given fields and persist the whole file."""
        current = self._load()
        merged = current.tts.model_copy(update=fields)
        # Round-trip through validation so bad values never reach disk.
        merged = TtsPrefs.model_validate(merged.model_dump())
        current.tts = merged
        self._save(current)
        return merged

    def _save(self, prefs: TtsPrefsFile) -> None:
        """Persist prefs atomically (temp file in the same dir + rename)."""
        self._path.parent.mkdir(parents=True, exist_ok=True)
        payload = prefs.model_dump(by_alias=True, exclude_none=True)
        fd, tmp_name = tempfile.mkstemp(
            prefix=f".{self._path.name}.", suffix=".tmp", dir=self._path.parent
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(json.dumps(payload, indent=2))
            os.replace(tmp_name, self._path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.info(f"Saved TTS prefs to {self._path}")


def is_tts_enabled(prefs_path: Path, default: bool) -> bool:
    enabled = TtsPrefsStore(prefs_path).read().enabled
    return default if enabled is None else enabled


def set_tts_enabled(prefs_path: Path, enabled: bool) -> None:
    TtsPrefsStore(prefs_path).update(enabled=enabled)


def get_prefs_provider(prefs_path: Path) -> Optional[TtsProviderId]:
    return TtsPrefsStore(prefs_path).read().provider


def set_tts_provider(prefs_path: Path, provider: TtsProviderId) -> None:
    TtsPrefsStore(prefs_path).update(provider=provider)


def get_tts_max_length(prefs_path: Path) -> int:
    max_length = TtsPrefsStore(prefs_path).read().max_length
    return DEFAULT_TTS_MAX_LENGTH if max_length is None else max_length


def set_tts_max_length(prefs_path: Path, max_length: int) -> None:
    TtsPrefsStore(prefs_path).update(max_length=max_length)


def is_summarization_enabled(prefs_path: Path) -> bool:
    summarize = TtsPrefsStore(prefs_path).read().summarize
    return DEFAULT_TTS_SUMMARIZE if summarize is None else summarize


def set_summarization_enabled(prefs_path: Path, enabled: bool) -> None:
    TtsPrefsStore(prefs_path).update(summarize=enabled)


__all__ = [
    "DEFAULT_TTS_MAX_LENGTH",
    "DEFAULT_TTS_SUMMARIZE",
    "TtsPrefsStore",
    "get_prefs_provider",
    "get_tts_max_length",
    "is_summarization_enabled",
    "is_tts_enabled",
    "set_summarization_enabled",
    "set_tts_enabled",
    "set_tts_max_length",
    "set_tts_provider",
]
