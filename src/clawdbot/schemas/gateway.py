"""Request/response envelope for gateway RPC methods."""

from __future__ import annotations

from typing import Any, Dict, Optional

from pydantic import BaseModel, Field


class ErrorCodes:
    INVALID_REQUEST = "INVALID_REQUEST"
    UNAVAILABLE = "UNAVAILABLE"


class ErrorShape(BaseModel):
    code: str
    message: str


class GatewayRequest(BaseModel):
    id: Optional[str] = None
    method: str
    params: Dict[str, Any] = Field(default_factory=dict)


class GatewayResponse(BaseModel):
    id: Optional[str] = None
    ok: bool
    payload: Optional[Dict[str, Any]] = None
    error: Optional[ErrorShape] = None


def error_shape(code: str, message: str) -> ErrorShape:
    return ErrorShape(code=code, message=message)


__all__ = [
    "ErrorCodes",
    "ErrorShape",
    "GatewayRequest",
    "GatewayResponse",
    "error_shape",
]
