"""Entrypoint for running the gateway app with uvicorn."""

from __future__ import annotations

import uvicorn


def main(host: str = "0.0.0.0", port: int = 8000) -> None:
    """Run the ASGI server."""

    uvicorn.run(
        "clawdbot.app:create_app",
        factory=True,
        host=host,
        port=port,
        reload=False,
    )


if __name__ == "__main__":  # pragma: no cover - manual invocation
    main()
