"""Load the gateway JSON config file."""

from __future__ import annotations

import json
import logging
from pathlib import Path

from pydantic import ValidationError

from ..config import Settings
from ..schemas.gateway_config import GatewayConfig

logger = logging.getLogger(__name__)


class GatewayConfigError(RuntimeError):
    """Raised when the gateway config file cannot be read or validated."""


def load_gateway_config(path: Path) -> GatewayConfig:
    """Read and validate the config file; a missing file yields defaults."""

    if not path.exists():
        logger.debug(f"Gateway config {path} not found, using defaults")
        return GatewayConfig()

    try:
        data = json.loads(path.read_text(encoding="utf-8") or "{}")
    except (OSError, json.JSONDecodeError) as exc:
        raise GatewayConfigError(f"Failed to read {path}: {exc}") from exc

    if not isinstance(data, dict):
        raise GatewayConfigError(f"{path} must contain a JSON object")

    try:
        return GatewayConfig.model_validate(data)
    except ValidationError as exc:
        raise GatewayConfigError(f"Invalid gateway config {path}: {exc}") from exc


def load_config_for(settings: Settings) -> GatewayConfig:
    return load_gateway_config(settings.resolved_config_path)


__all__ = ["GatewayConfigError", "load_config_for", "load_gateway_config"]
