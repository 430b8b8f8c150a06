"""Tests for the clawdbot-tts command-line client."""

from __future__ import annotations

import json
from unittest.mock import patch

import httpx
import pytest
from rich.console import Console

from clawdbot import cli


def _console() -> Console:
    return Console(record=True, width=120)


def test_parse_params_keeps_json_types():
    assert cli.parse_params(["text=Hello there", "limit=2000", "enabled=true"]) == {
        "text": "Hello there",
        "limit": 2000,
        "enabled": True,
    }
    with pytest.raises(ValueError):
        cli.parse_params(["novalue"])


@pytest.mark.asyncio
async def test_call_rpc_posts_envelope():
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"id": "cli", "ok": True, "payload": {"enabled": True}})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        response = await cli.call_rpc(
            "http://gw:8000/", "tts.enable", {}, client=client
        )

    assert seen["url"] == "http://gw:8000/api/gateway/rpc"
    assert seen["body"] == {"id": "cli", "method": "tts.enable", "params": {}}
    assert response["payload"] == {"enabled": True}


@pytest.mark.asyncio
async def test_send_command_posts_text_and_channel():
    seen: dict = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["body"] = json.loads(request.content)
        return httpx.Response(200, json={"handled": True, "reply": {"text": "ok"}})

    async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
        await cli.send_command("http://gw:8000", "/tts on", channel="discord", client=client)

    assert seen["body"] == {"text": "/tts on", "channel": "discord"}


def test_render_rpc_error_returns_nonzero():
    console = _console()

    code = cli.render_rpc_response(
        console,
        {"ok": False, "error": {"code": "INVALID_REQUEST", "message": "tts.convert requires text"}},
    )

    assert code == 1
    assert "tts.convert requires text" in console.export_text()


def test_render_providers_table():
    console = _console()

    code = cli.render_rpc_response(
        console,
        {
            "ok": True,
            "payload": {
                "active": "openai",
                "providers": [
                    {"id": "openai", "configured": True, "models": ["gpt-4o-mini-tts"], "voices": ["alloy"]},
                ],
            },
        },
    )

    output = console.export_text()
    assert code == 0
    assert "active: openai" in output
    assert "gpt-4o-mini-tts" in output


def test_render_command_reply_with_audio():
    console = _console()

    code = cli.render_command_response(
        console, {"handled": True, "reply": {"text": None, "mediaUrl": "/tmp/voice.opus"}}
    )

    assert code == 0
    assert "/tmp/voice.opus" in console.export_text()


def test_main_rpc_uses_server_and_params():
    console = _console()

    async def fake_call(server, method, params, client=None):
        assert server == "http://gw:9000"
        assert method == "tts.setProvider"
        assert params == {"provider": "openai"}
        return {"ok": True, "payload": {"provider": "openai"}}

    with patch.object(cli, "call_rpc", side_effect=fake_call):
        code = cli.main(
            ["--server", "http://gw:9000", "rpc", "tts.setProvider", "provider=openai"],
            console=console,
        )

    assert code == 0
    assert "provider" in console.export_text()


def test_main_reports_unreachable_gateway():
    console = _console()

    async def fake_send(server, text, channel=None, client=None):
        raise httpx.ConnectError("refused")

    with patch.object(cli, "send_command", side_effect=fake_send):
        code = cli.main(["command", "/tts status"], console=console)

    assert code == 2
    assert "Cannot reach gateway" in console.export_text()


def test_main_serve_runs_uvicorn():
    with patch("clawdbot.main.uvicorn.run") as run:
        code = cli.main(["serve", "--port", "9100"])

    assert code == 0
    run.assert_called_once_with(
        "clawdbot.app:create_app", factory=True, host="0.0.0.0", port=9100, reload=False
    )
