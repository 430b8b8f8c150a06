"""Inline ``[[tts:...]]`` directives emitted by the model.

A reply may carry control tags such as::

    Hello [[tts:provider=elevenlabs voiceId=pMsXgVXv3BLzUgSXRplE speed=1.1]] world
    [[tts:text]](laughs) Read the song once more.[[/tts:text]]

The tags are stripped from the text shown to the user and turned into a
sparse set of synthesis overrides. The ``[[tts:text]]`` block supplies the
text that is spoken instead of the visible reply. What the model may
control is limited by a :class:`ModelOverridePolicy`.

Scanning is fail-open: anything that looks like the start of a tag but does
not close properly is kept in the text as-is.
"""

from __future__ import annotations

import math
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Optional

from ..schemas.gateway_config import ModelOverridesConfig


OPENAI_TTS_MODELS: tuple[str, ...] = ("gpt-4o-mini-tts",)
OPENAI_TTS_VOICES: tuple[str, ...] = (
    "alloy",
    "ash",
    "coral",
    "echo",
    "fable",
    "onyx",
    "nova",
    "sage",
    "shimmer",
)
ELEVENLABS_TTS_MODELS: tuple[str, ...] = (
    "eleven_multilingual_v2",
    "eleven_turbo_v2_5",
    "eleven_monolingual_v1",
)

TTS_PROVIDERS: tuple[str, ...] = ("openai", "elevenlabs")
TEXT_NORMALIZATION_MODES: tuple[str, ...] = ("auto", "on", "off")
SEED_MAX = 4_294_967_295

_VOICE_ID_RE = re.compile(r"[a-zA-Z0-9]{10,40}")
_LANGUAGE_CODE_RE = re.compile(r"[a-z]{2}")

_TAG_START_RE = re.compile(r"\[\[tts:", re.IGNORECASE)
_BLOCK_RE = re.compile(
    r"\[\[tts:text\]\](.*?)\[\[/tts:text\]\]", re.IGNORECASE | re.DOTALL
)
_BLOCK_OPEN_RE = re.compile(r"\[\[tts:text\]\]", re.IGNORECASE)
_DIRECTIVE_RE = re.compile(r"\[\[tts:([^\]]+)\]\]", re.IGNORECASE)


# ---------------------------------------------------------------------------
# Value validation
# ---------------------------------------------------------------------------


def is_valid_voice_id(voice_id: str) -> bool:
    return bool(_VOICE_ID_RE.fullmatch(voice_id))


def is_valid_openai_voice(voice: str) -> bool:
    return voice in OPENAI_TTS_VOICES


def is_valid_openai_model(model: str) -> bool:
    return model in OPENAI_TTS_MODELS


def require_in_range(value: float, minimum: float, maximum: float, label: str) -> None:
    if not math.isfinite(value) or value < minimum or value > maximum:
        raise ValueError(f"{label} must be between {minimum} and {maximum}")


def normalize_language_code(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    normalized = value.strip().lower()
    if not normalized:
        return None
    if not _LANGUAGE_CODE_RE.fullmatch(normalized):
        raise ValueError("languageCode must be a 2-letter ISO 639-1 code (e.g. en, de, fr)")
    return normalized


def normalize_apply_text_normalization(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    normalized = value.strip().lower()
    if not normalized:
        return None
    if normalized not in TEXT_NORMALIZATION_MODES:
        raise ValueError("applyTextNormalization must be one of: auto, on, off")
    return normalized


def normalize_seed(value: Optional[int]) -> Optional[int]:
    if value is None:
        return None
    if value < 0 or value > SEED_MAX:
        raise ValueError(f"seed must be between 0 and {SEED_MAX}")
    return value


def parse_boolean_value(value: str) -> Optional[bool]:
    normalized = value.strip().lower()
    if normalized == "true":
        return True
    if normalized == "false":
        return False
    return None


def parse_number_value(value: str) -> Optional[float]:
    try:
        parsed = float(value)
    except ValueError:
        return None
    return parsed if math.isfinite(parsed) else None


# ---------------------------------------------------------------------------
# Policy and overrides
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ModelOverridePolicy:
    """Directive fields a deployment lets the model control."""

    enabled: bool = True
    allow_text: bool = True
    allow_provider: bool = True
    allow_voice: bool = True
    allow_model_id: bool = True
    allow_voice_settings: bool = True
    allow_normalization: bool = True
    allow_seed: bool = True


def resolve_model_override_policy(
    overrides: Optional[ModelOverridesConfig] = None,
) -> ModelOverridePolicy:
    """Build the policy from config; everything is allowed unless switched off."""

    if overrides is None:
        return ModelOverridePolicy()
    enabled = True if overrides.enabled is None else overrides.enabled
    if not enabled:
        return ModelOverridePolicy(
            enabled=False,
            allow_text=False,
            allow_provider=False,
            allow_voice=False,
            allow_model_id=False,
            allow_voice_settings=False,
            allow_normalization=False,
            allow_seed=False,
        )

    def allow(value: Optional[bool]) -> bool:
        return True if value is None else value

    return ModelOverridePolicy(
        enabled=True,
        allow_text=allow(overrides.allow_text),
        allow_provider=allow(overrides.allow_provider),
        allow_voice=allow(overrides.allow_voice),
        allow_model_id=allow(overrides.allow_model_id),
        allow_voice_settings=allow(overrides.allow_voice_settings),
        allow_normalization=allow(overrides.allow_normalization),
        allow_seed=allow(overrides.allow_seed),
    )


@dataclass
class VoiceSettingsOverrides:
    stability: Optional[float] = None
    similarity_boost: Optional[float] = None
    style: Optional[float] = None
    speed: Optional[float] = None
    use_speaker_boost: Optional[bool] = None

    def as_dict(self) -> dict[str, float | bool]:
        return {k: v for k, v in self.__dict__.items() if v is not None}


@dataclass
class ElevenLabsOverrides:
    voice_id: Optional[str] = None
    model_id: Optional[str] = None
    voice_settings: VoiceSettingsOverrides = field(default_factory=VoiceSettingsOverrides)
    apply_text_normalization: Optional[str] = None
    language_code: Optional[str] = None
    seed: Optional[int] = None


@dataclass
class OpenAIOverrides:
    voice: Optional[str] = None
    model: Optional[str] = None


@dataclass
class TtsOverrides:
    """Sparse per-reply synthesis overrides; unset fields are None."""

    provider: Optional[str] = None
    openai: OpenAIOverrides = field(default_factory=OpenAIOverrides)
    elevenlabs: ElevenLabsOverrides = field(default_factory=ElevenLabsOverrides)

    def is_empty(self) -> bool:
        return self == TtsOverrides()


@dataclass
class TtsDirectiveParseResult:
    cleaned_text: str
    tts_text: Optional[str] = None
    overrides: TtsOverrides = field(default_factory=TtsOverrides)
    warnings: list[str] = field(default_factory=list)
    has_directive: bool = False


# ---------------------------------------------------------------------------
# Scanning
# ---------------------------------------------------------------------------


class SegmentKind(str, Enum):
    TEXT = "text"
    BLOCK = "block"
    DIRECTIVE = "directive"
    MALFORMED = "malformed"


@dataclass(frozen=True)
class DirectiveSegment:
    kind: SegmentKind
    raw: str
    body: str = ""


def scan_directives(text: str) -> list[DirectiveSegment]:
    """Split text into plain text, text blocks, directives and malformed tags.

    Joining ``raw`` of all segments reproduces the input exactly.
    """

    segments: list[DirectiveSegment] = []
    pos = 0
    text_start = 0

    def flush(end: int) -> None:
        if end > text_start:
            segments.append(DirectiveSegment(SegmentKind.TEXT, text[text_start:end]))

    while True:
        match = _TAG_START_RE.search(text, pos)
        if match is None:
            break
        start = match.start()

        block = _BLOCK_RE.match(text, start)
        if block is not None:
            flush(start)
            segments.append(
                DirectiveSegment(SegmentKind.BLOCK, block.group(0), block.group(1))
            )
            pos = text_start = block.end()
            continue

        # An opening text tag without its closing tag is not a directive.
        directive = None
        if _BLOCK_OPEN_RE.match(text, start) is None:
            directive = _DIRECTIVE_RE.match(text, start)
        if directive is not None:
            flush(start)
            segments.append(
                DirectiveSegment(
                    SegmentKind.DIRECTIVE, directive.group(0), directive.group(1)
                )
            )
            pos = text_start = directive.end()
            continue

        flush(start)
        segments.append(DirectiveSegment(SegmentKind.MALFORMED, match.group(0)))
        pos = text_start = match.end()

    flush(len(text))
    return segments


# ---------------------------------------------------------------------------
# Directive keys
# ---------------------------------------------------------------------------

_Handler = Callable[[str, ModelOverridePolicy, TtsOverrides, list[str]], None]


def _set_provider(value: str, policy: ModelOverridePolicy, overrides: TtsOverrides, warnings: list[str]) -> None:
    if not policy.allow_provider:
        return
    if value in TTS_PROVIDERS:
        overrides.provider = value
    else:
        warnings.append(f'unsupported provider "{value}"')


def _set_openai_voice(value: str, policy: ModelOverridePolicy, overrides: TtsOverrides, warnings: list[str]) -> None:
    if not policy.allow_voice:
        return
    if is_valid_openai_voice(value):
        overrides.openai.voice = value
    else:
        warnings.append(f'invalid OpenAI voice "{value}"')


def _set_voice_id(value: str, policy: ModelOverridePolicy, overrides: TtsOverrides, warnings: list[str]) -> None:
    if not policy.allow_voice:
        return
    if is_valid_voice_id(value):
        overrides.elevenlabs.voice_id = value
    else:
        warnings.append(f'invalid ElevenLabs voiceId "{value}"')


def _set_model(value: str, policy: ModelOverridePolicy, overrides: TtsOverrides, warnings: list[str]) -> None:
    if not policy.allow_model_id:
        return
    if is_valid_openai_model(value):
        overrides.openai.model = value
    else:
        overrides.elevenlabs.model_id = value


def _voice_setting(name: str, label: str, minimum: float, maximum: float) -> _Handler:
    def handler(value: str, policy: ModelOverridePolicy, overrides: TtsOverrides, warnings: list[str]) -> None:
        if not policy.allow_voice_settings:
            return
        number = parse_number_value(value)
        if number is None:
            warnings.append(f"invalid {label} value")
            return
        require_in_range(number, minimum, maximum, label)
        setattr(overrides.elevenlabs.voice_settings, name, number)

    return handler


def _set_speaker_boost(value: str, policy: ModelOverridePolicy, overrides: TtsOverrides, warnings: list[str]) -> None:
    if not policy.allow_voice_settings:
        return
    flag = parse_boolean_value(value)
    if flag is None:
        warnings.append("invalid useSpeakerBoost value")
        return
    overrides.elevenlabs.voice_settings.use_speaker_boost = flag


def _set_normalization(value: str, policy: ModelOverridePolicy, overrides: TtsOverrides, warnings: list[str]) -> None:
    if not policy.allow_normalization:
        return
    overrides.elevenlabs.apply_text_normalization = normalize_apply_text_normalization(value)


def _set_language(value: str, policy: ModelOverridePolicy, overrides: TtsOverrides, warnings: list[str]) -> None:
    if not policy.allow_normalization:
        return
    overrides.elevenlabs.language_code = normalize_language_code(value)


def _set_seed(value: str, policy: ModelOverridePolicy, overrides: TtsOverrides, warnings: list[str]) -> None:
    if not policy.allow_seed:
        return
    try:
        seed = int(value, 10)
    except ValueError:
        warnings.append("invalid seed value")
        return
    overrides.elevenlabs.seed = normalize_seed(seed)


_HANDLERS: dict[str, _Handler] = {}


def _register(handler: _Handler, *keys: str) -> None:
    for key in keys:
        _HANDLERS[key] = handler


_register(_set_provider, "provider")
_register(_set_openai_voice, "voice", "openai_voice", "openaivoice")
_register(_set_voice_id, "voiceid", "voice_id", "elevenlabs_voice", "elevenlabsvoice")
_register(
    _set_model,
    "model",
    "modelid",
    "model_id",
    "elevenlabs_model",
    "elevenlabsmodel",
    "openai_model",
    "openaimodel",
)
_register(_voice_setting("stability", "stability", 0, 1), "stability")
_register(
    _voice_setting("similarity_boost", "similarityBoost", 0, 1),
    "similarity",
    "similarityboost",
    "similarity_boost",
)
_register(_voice_setting("style", "style", 0, 1), "style")
_register(_voice_setting("speed", "speed", 0.5, 2), "speed")
_register(
    _set_speaker_boost,
    "speakerboost",
    "speaker_boost",
    "usespeakerboost",
    "use_speaker_boost",
)
_register(
    _set_normalization,
    "normalize",
    "applytextnormalization",
    "apply_text_normalization",
)
_register(_set_language, "language", "languagecode", "language_code")
_register(_set_seed, "seed")


def _apply_directive(
    body: str,
    policy: ModelOverridePolicy,
    overrides: TtsOverrides,
    warnings: list[str],
) -> None:
    for token in body.split():
        key, sep, value = token.partition("=")
        key, value = key.strip(), value.strip()
        if not sep or not key or not value:
            continue
        handler = _HANDLERS.get(key.lower())
        if handler is None:
            continue
        try:
            handler(value, policy, overrides, warnings)
        except ValueError as exc:
            warnings.append(str(exc))


def parse_tts_directives(text: str, policy: ModelOverridePolicy) -> TtsDirectiveParseResult:
    """Strip directives from ``text`` and collect the overrides they carry.

    With the policy disabled the text is returned untouched so the tags stay
    visible; nothing is parsed.
    """

    if not policy.enabled:
        return TtsDirectiveParseResult(cleaned_text=text)

    result = TtsDirectiveParseResult(cleaned_text="")
    parts: list[str] = []
    for segment in scan_directives(text):
        if segment.kind in (SegmentKind.TEXT, SegmentKind.MALFORMED):
            parts.append(segment.raw)
            continue
        result.has_directive = True
        if segment.kind is SegmentKind.BLOCK:
            if policy.allow_text and result.tts_text is None:
                result.tts_text = segment.body.strip()
            continue
        _apply_directive(segment.body, policy, result.overrides, result.warnings)

    result.cleaned_text = "".join(parts)
    return result


__all__ = [
    "DirectiveSegment",
    "ELEVENLABS_TTS_MODELS",
    "ElevenLabsOverrides",
    "ModelOverridePolicy",
    "OPENAI_TTS_MODELS",
    "OPENAI_TTS_VOICES",
    "OpenAIOverrides",
    "SegmentKind",
    "TTS_PROVIDERS",
    "TtsDirectiveParseResult",
    "TtsOverrides",
    "VoiceSettingsOverrides",
    "is_valid_openai_model",
    "is_valid_openai_voice",
    "is_valid_voice_id",
    "normalize_apply_text_normalization",
    "normalize_language_code",
    "normalize_seed",
    "parse_boolean_value",
    "parse_number_value",
    "parse_tts_directives",
    "require_in_range",
    "resolve_model_override_policy",
    "scan_directives",
]
