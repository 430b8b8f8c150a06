"""Shorten over-long replies with a language model before synthesis."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Optional

import httpx

from ..config import Settings
from ..schemas.gateway_config import GatewayConfig
from .tts_config import ResolvedTtsConfig

logger = logging.getLogger(__name__)

SUMMARY_MIN_TARGET_LENGTH = 100
SUMMARY_MAX_TARGET_LENGTH = 10_000
SUMMARY_MAX_TOKENS = 250
SUMMARY_TEMPERATURE = 0.3

DEFAULT_SUMMARY_MODEL = "openai/gpt-4o-mini"
DEFAULT_MODEL_PROVIDER = "openai"

# OpenAI-compatible endpoints reachable without extra configuration.
_BUILTIN_PROVIDERS: dict[str, tuple[str, str]] = {
    "openai": ("https://api.openai.com/v1", "openai_api_key"),
    "openrouter": ("https://openrouter.ai/api/v1", "openrouter_api_key"),
}


class SummarizationError(RuntimeError):
    """Raised when the summary model call fails or returns nothing usable."""


class SummaryModelUnavailable(SummarizationError):
    """Raised when the summary model has no endpoint or credentials."""


@dataclass(frozen=True)
class ModelRef:
    provider: str
    model: str

    def __str__(self) -> str:
        return f"{self.provider}/{self.model}"


@dataclass(frozen=True)
class SummaryEndpoint:
    ref: ModelRef
    base_url: str
    api_key: str


@dataclass(frozen=True)
class SummaryResult:
    summary: str
    input_length: int
    output_length: int
    latency_ms: int


def parse_model_ref(raw: str) -> ModelRef:
    """Split ``provider/model``; a bare model id belongs to the default provider."""

    value = raw.strip()
    provider, sep, model = value.partition("/")
    if not sep:
        return ModelRef(DEFAULT_MODEL_PROVIDER, value)
    if not provider or not model:
        raise ValueError(f"Invalid model reference: {raw!r}")
    return ModelRef(provider.lower(), model)


def resolve_summary_model_ref(
    gateway_config: Optional[GatewayConfig], config: ResolvedTtsConfig
) -> ModelRef:
    """``summaryModel`` override, else the agent's primary model."""

    if config.summary_model:
        return parse_model_ref(config.summary_model)
    primary = (gateway_config or GatewayConfig()).agents.defaults.model.primary
    if primary and primary.strip():
        return parse_model_ref(primary)
    return parse_model_ref(DEFAULT_SUMMARY_MODEL)


def resolve_summary_endpoint(
    gateway_config: Optional[GatewayConfig],
    config: ResolvedTtsConfig,
    settings: Settings,
) -> SummaryEndpoint:
    ref = resolve_summary_model_ref(gateway_config, config)
    providers = (gateway_config or GatewayConfig()).models.providers
    custom = providers.get(ref.provider)
    builtin = _BUILTIN_PROVIDERS.get(ref.provider)

    base_url = custom.base_url if custom and custom.base_url else None
    api_key = custom.api_key if custom and custom.api_key else None
    if builtin is not None:
        base_url = base_url or builtin[0]
        api_key = api_key or settings.secret(builtin[1])

    if not base_url:
        raise SummaryModelUnavailable(f"Unknown summary model provider: {ref.provider}")
    if not api_key:
        raise SummaryModelUnavailable(f"No API key for summary model {ref}")
    return SummaryEndpoint(ref=ref, base_url=base_url.rstrip("/"), api_key=api_key)


def has_summary_credentials(
    gateway_config: Optional[GatewayConfig],
    config: ResolvedTtsConfig,
    settings: Settings,
) -> bool:
    try:
        resolve_summary_endpoint(gateway_config, config, settings)
    except (SummaryModelUnavailable, ValueError) as exc:
        logger.debug(f"Summary model unavailable: {exc}")
        return False
    return True


def build_summary_prompt(text: str, target_length: int) -> str:
    return (
        "You are an assistant that summarizes texts concisely while keeping the most "
        "important information. "
        f"Summarize the text to approximately {target_length} characters. "
        "Maintain the original tone and style. "
        "Reply only with the summary, without additional explanations.\n\n"
        "<text_to_summarize>\n"
        f"{text}\n"
        "</text_to_summarize>"
    )


def _extract_summary(data: object) -> str:
    """Join the text parts of the first choice; empty when there are none."""

    try:
        content = data["choices"][0]["message"]["content"]  # type: ignore[index]
    except (KeyError, IndexError, TypeError):
        return ""
    if isinstance(content, str):
        return content.strip()
    if isinstance(content, list):
        parts = [
            part.get("text", "").strip()
            for part in content
            if isinstance(part, dict) and part.get("type") == "text"
        ]
        return " ".join(p for p in parts if p).strip()
    return ""


async def summarize_text(
    *,
    text: str,
    target_length: int,
    gateway_config: Optional[GatewayConfig],
    config: ResolvedTtsConfig,
    settings: Settings,
    timeout_ms: int,
    http_client: Optional[httpx.AsyncClient] = None,
) -> SummaryResult:
    """Ask the summary model for a version of ``text`` near ``target_length``.

    Raises:
        ValueError: ``target_length`` outside 100..10000.
        SummaryModelUnavailable: no endpoint or credentials for the model.
        SummarizationError: timeout, HTTP failure, or an empty summary.
    """
    if target_length < SUMMARY_MIN_TARGET_LENGTH or target_length > SUMMARY_MAX_TARGET_LENGTH:
        raise ValueError(f"Invalid targetLength: {target_length}")

    start = time.monotonic()
    endpoint = resolve_summary_endpoint(gateway_config, config, settings)
    payload = {
        "model": endpoint.ref.model,
        "messages": [{"role": "user", "content": build_summary_prompt(text, target_length)}],
        "max_tokens": SUMMARY_MAX_TOKENS,
        "temperature": SUMMARY_TEMPERATURE,
        "stream": False,
    }
    headers = {
        "Authorization": f"Bearer {endpoint.api_key}",
        "Content-Type": "application/json",
    }
    timeout = httpx.Timeout(timeout_ms / 1000)
    url = f"{endpoint.base_url}/chat/completions"

    try:
        if http_client is not None:
            resp = await http_client.post(url, headers=headers, json=payload, timeout=timeout)
        else:
            async with httpx.AsyncClient(timeout=timeout) as client:
                resp = await client.post(url, headers=headers, json=payload)
        resp.raise_for_status()
        data = resp.json()
    except httpx.TimeoutException as exc:
        raise SummarizationError("Summarization timed out") from exc
    except httpx.HTTPStatusError as exc:
        raise SummarizationError(
            f"Summary model {endpoint.ref} returned HTTP {exc.response.status_code}"
        ) from exc
    except (httpx.HTTPError, ValueError) as exc:
        raise SummarizationError(f"Summary request failed: {exc}") from exc

    summary = _extract_summary(data)
    if not summary:
        raise SummarizationError("No summary returned")

    latency_ms = int((time.monotonic() - start) * 1000)
    logger.info(
        f"Summarized reply with {endpoint.ref}: {len(text)} -> {len(summary)} chars "
        f"in {latency_ms}ms"
    )
    return SummaryResult(
        summary=summary,
        input_length=len(text),
        output_length=len(summary),
        latency_ms=latency_ms,
    )


__all__ = [
    "ModelRef",
    "SummarizationError",
    "SummaryEndpoint",
    "SummaryModelUnavailable",
    "SummaryResult",
    "build_summary_prompt",
    "has_summary_credentials",
    "parse_model_ref",
    "resolve_summary_endpoint",
    "resolve_summary_model_ref",
    "summarize_text",
]
