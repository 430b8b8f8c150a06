"""Gateway RPC endpoint: ``{"method", "params"}`` in, ``{"ok", ...}`` out."""

from __future__ import annotations

import logging
from typing import Dict

from fastapi import APIRouter, Depends, Request

from ..schemas.gateway import ErrorCodes, GatewayRequest, GatewayResponse, error_shape
from .tts import TTS_HANDLERS, GatewayContext, GatewayHandler, GatewayMethodError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/gateway", tags=["gateway"])

GATEWAY_HANDLERS: Dict[str, GatewayHandler] = {**TTS_HANDLERS}


def get_gateway_context(request: Request) -> GatewayContext:
    settings = getattr(request.app.state, "settings", None)
    if settings is None:  # pragma: no cover
        raise RuntimeError("Settings are not configured")
    return GatewayContext(
        settings=settings,
        http_client=getattr(request.app.state, "http_client", None),
    )


async def dispatch(request: GatewayRequest, ctx: GatewayContext) -> GatewayResponse:
    """Run one method; every failure becomes an error response."""

    handler = GATEWAY_HANDLERS.get(request.method)
    if handler is None:
        return GatewayResponse(
            id=request.id,
            ok=False,
            error=error_shape(ErrorCodes.INVALID_REQUEST, f"unknown method: {request.method}"),
        )
    try:
        payload = await handler(request.params, ctx)
    except GatewayMethodError as exc:
        return GatewayResponse(id=request.id, ok=False, error=error_shape(exc.code, exc.message))
    except Exception as exc:
        logger.exception(f"Gateway method {request.method} failed")
        return GatewayResponse(
            id=request.id,
            ok=False,
            error=error_shape(ErrorCodes.UNAVAILABLE, str(exc) or exc.__class__.__name__),
        )
    return GatewayResponse(id=request.id, ok=True, payload=payload)


@router.post("/rpc", response_model=GatewayResponse)
async def call_method(
    payload: GatewayRequest,
    ctx: GatewayContext = Depends(get_gateway_context),
) -> GatewayResponse:
    return await dispatch(payload, ctx)


__all__ = ["GATEWAY_HANDLERS", "dispatch", "get_gateway_context", "router"]
