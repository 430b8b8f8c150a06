"""Outbound reply preparation, called by channel adapters before sending."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends

from ..schemas.tts import PrepareReplyRequest, ReplyPayload
from ..services.auto_tts import maybe_apply_tts_to_payload
from ..services.gateway_config import GatewayConfigError, load_config_for
from .gateway import get_gateway_context
from .tts import GatewayContext

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/replies", tags=["replies"])


@router.post("/prepare", response_model=ReplyPayload, response_model_by_alias=True)
async def prepare_reply(
    request: PrepareReplyRequest,
    ctx: GatewayContext = Depends(get_gateway_context),
) -> ReplyPayload:
    try:
        gateway_config = load_config_for(ctx.settings)
    except GatewayConfigError as exc:
        logger.warning(f"Sending reply without TTS: {exc}")
        return request.payload

    return await maybe_apply_tts_to_payload(
        request.payload,
        settings=ctx.settings,
        gateway_config=gateway_config,
        channel=request.channel,
        kind=request.kind,
        http_client=ctx.http_client,
    )


__all__ = ["router"]
