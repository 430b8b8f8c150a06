"""clawdbot-tts - terminal client for the TTS gateway.

Runs the server, calls ``tts.*`` gateway methods, and sends ``/tts`` chat
commands from the shell.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import os
import sys
from typing import Any, Optional, Sequence

import httpx
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.style import Style
from rich.table import Table

DEFAULT_SERVER = "http://localhost:8000"

ERROR_STYLE = Style(color="red", bold=True)
INFO_STYLE = Style(color="cyan")


def parse_params(pairs: Sequence[str]) -> dict[str, Any]:
    """Turn ``key=value`` arguments into RPC params.

    Values that parse as JSON (numbers, booleans, objects) keep their type,
    everything else is passed through as a string.
    """
    params: dict[str, Any] = {}
    for pair in pairs:
        key, sep, raw = pair.partition("=")
        if not sep or not key.strip():
            raise ValueError(f"Expected key=value, got: {pair}")
        try:
            value: Any = json.loads(raw)
        except json.JSONDecodeError:
            value = raw
        params[key.strip()] = value
    return params


async def call_rpc(
    server: str,
    method: str,
    params: dict[str, Any],
    *,
    client: Optional[httpx.AsyncClient] = None,
) -> dict[str, Any]:
    body = {"id": "cli", "method": method, "params": params}
    url = f"{server.rstrip('/')}/api/gateway/rpc"
    if client is not None:
        resp = await client.post(url, json=body)
    else:
        async with httpx.AsyncClient(timeout=60.0) as owned:
            resp = await owned.post(url, json=body)
    resp.raise_for_status()
    return resp.json()


async def send_command(
    server: str,
    text: str,
    *,
    channel: Optional[str] = None,
    client: Optional[httpx.AsyncClient] = None,
) -> dict[str, Any]:
    body = {"text": text, "channel": channel}
    url = f"{server.rstrip('/')}/api/commands"
    if client is not None:
        resp = await client.post(url, json=body)
    else:
        async with httpx.AsyncClient(timeout=60.0) as owned:
            resp = await owned.post(url, json=body)
    resp.raise_for_status()
    return resp.json()


def render_rpc_response(console: Console, response: dict[str, Any]) -> int:
    if not response.get("ok"):
        error = response.get("error") or {}
        console.print(
            escape(f"[{error.get('code', 'ERROR')}] {error.get('message', 'request failed')}"),
            style=ERROR_STYLE,
        )
        return 1

    payload = response.get("payload") or {}
    if isinstance(payload.get("providers"), list):
        table = Table(title=f"TTS providers (active: {payload.get('active')})")
        table.add_column("id")
        table.add_column("configured")
        table.add_column("models")
        table.add_column("voices")
        for provider in payload["providers"]:
            table.add_row(
                str(provider.get("id")),
                "yes" if provider.get("configured") else "no",
                ", ".join(provider.get("models") or []),
                ", ".join(provider.get("voices") or []),
            )
        console.print(table)
        return 0

    table = Table(show_header=False)
    for key, value in payload.items():
        table.add_row(key, json.dumps(value) if not isinstance(value, str) else value)
    console.print(table)
    return 0


def render_command_response(console: Console, response: dict[str, Any]) -> int:
    if not response.get("handled"):
        console.print("Not a /tts command.", style=INFO_STYLE)
        return 1
    reply = response.get("reply") or {}
    body = reply.get("text") or ""
    media = reply.get("mediaUrl")
    if media:
        body = f"{body}\n\n[dim]audio: {media}[/dim]" if body else f"[dim]audio: {media}[/dim]"
    console.print(Panel(body, title="/tts", border_style="green"))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="clawdbot-tts",
        description="Clawdbot TTS gateway",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  clawdbot-tts serve --port 8000
  clawdbot-tts rpc tts.status
  clawdbot-tts rpc tts.setProvider provider=openai
  clawdbot-tts command "/tts limit 2000"

Environment Variables:
  CLAWDBOT_SERVER    Default server URL
""",
    )
    parser.add_argument(
        "--server",
        "-s",
        default=os.environ.get("CLAWDBOT_SERVER", DEFAULT_SERVER),
        help=f"Gateway server URL (default: {DEFAULT_SERVER})",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the gateway server")
    serve.add_argument("--host", default="0.0.0.0")
    serve.add_argument("--port", type=int, default=8000)

    rpc = sub.add_parser("rpc", help="Call a gateway method")
    rpc.add_argument("method", help="Method name, e.g. tts.status")
    rpc.add_argument("params", nargs="*", help="Parameters as key=value")

    command = sub.add_parser("command", help="Send a /tts chat command")
    command.add_argument("text", help='Command text, e.g. "/tts status"')
    command.add_argument("--channel", default=None, help="Originating channel id")

    return parser


def main(argv: Optional[Sequence[str]] = None, console: Optional[Console] = None) -> int:
    """CLI entry point."""
    args = build_parser().parse_args(argv)
    console = console or Console()

    if args.command == "serve":
        from .main import main as serve

        serve(host=args.host, port=args.port)
        return 0

    try:
        if args.command == "rpc":
            params = parse_params(args.params)
            response = asyncio.run(call_rpc(args.server, args.method, params))
            return render_rpc_response(console, response)
        response = asyncio.run(send_command(args.server, args.text, channel=args.channel))
        return render_command_response(console, response)
    except ValueError as e:
        console.print(str(e), style=ERROR_STYLE)
        return 2
    except httpx.HTTPError as e:
        console.print(f"Cannot reach gateway at {args.server}: {e}", style=ERROR_STYLE)
        return 2


if __name__ == "__main__":
    sys.exit(main())
