"""Chat slash commands handled by the gateway."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException

from ..schemas.tts import CommandRequest, CommandResponse
from ..services.gateway_config import GatewayConfigError, load_config_for
from ..services.tts_commands import handle_tts_command
from .gateway import get_gateway_context
from .tts import GatewayContext

router = APIRouter(prefix="/api/commands", tags=["commands"])


@router.post("", response_model=CommandResponse)
async def run_command(
    payload: CommandRequest,
    ctx: GatewayContext = Depends(get_gateway_context),
) -> CommandResponse:
    try:
        gateway_config = load_config_for(ctx.settings)
    except GatewayConfigError as exc:
        raise HTTPException(status_code=503, detail=str(exc)) from exc

    reply = await handle_tts_command(
        payload.text,
        settings=ctx.settings,
        gateway_config=gateway_config,
        channel=payload.channel,
        http_client=ctx.http_client,
    )
    return CommandResponse(handled=reply is not None, reply=reply)


__all__ = ["router"]
