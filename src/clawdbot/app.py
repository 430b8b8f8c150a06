"""Application factory for the TTS gateway service."""

from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from . import __version__
from .config import Settings, get_settings
from .logging_handlers import DateStampedFileHandler, cleanup_old_logs
from .logging_settings import parse_logging_settings
from .routers.commands import router as commands_router
from .routers.gateway import router as gateway_router
from .routers.replies import router as replies_router
from .services.tts_service import TTSService

PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
LOGGING_SETTINGS_PATH = PROJECT_ROOT / "logging_settings.conf"

_LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
_LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"


def _configure_logging() -> None:
    """Configure logging from LOG_LEVEL/LOG_FILE/LOG_DIR and logging_settings.conf."""
    # Load .env file first to ensure LOG_FILE is available
    load_dotenv()

    log_settings = parse_logging_settings(LOGGING_SETTINGS_PATH)

    env_level = os.getenv("LOG_LEVEL")
    if env_level:
        terminal_level: int | None = getattr(logging, env_level.upper(), logging.INFO)
        file_level: int | None = terminal_level
    else:
        terminal_level = log_settings.terminal_level
        file_level = log_settings.file_level

    formatter = logging.Formatter(_LOG_FORMAT, datefmt=_LOG_DATEFMT)
    handlers: list[logging.Handler] = []

    log_file = os.getenv("LOG_FILE")
    log_dir = os.getenv("LOG_DIR")
    if file_level is not None and (log_file or log_dir):
        if log_file:
            log_path = Path(log_file)
            log_path.parent.mkdir(parents=True, exist_ok=True)
            file_handler: logging.Handler = logging.FileHandler(log_path, encoding="utf-8")
        else:
            file_handler = DateStampedFileHandler(log_dir)
        file_handler.setLevel(file_level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if terminal_level is not None:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(terminal_level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    levels = [level for level in (terminal_level, file_level) if level is not None]
    root_level = min(levels) if levels else logging.WARNING

    logging.basicConfig(
        level=root_level,
        handlers=handlers or [logging.NullHandler()],
        force=True,  # Override any existing configuration
    )

    logging.getLogger("clawdbot").setLevel(root_level)
    logging.getLogger("uvicorn").setLevel(root_level)
    logging.getLogger("uvicorn.access").setLevel(root_level)
    logging.getLogger("uvicorn.error").setLevel(root_level)

    # Request lines from httpx are only useful when debugging vendor calls
    if root_level > logging.DEBUG:
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("httpcore").setLevel(logging.WARNING)

    if log_dir:
        cleanup_old_logs(
            [log_dir],
            log_settings.retention_hours,
            logger=logging.getLogger("clawdbot.logging"),
        )


def create_app(settings: Settings | None = None) -> FastAPI:
    _configure_logging()

    settings = settings or get_settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        try:
            yield
        finally:
            await TTSService.close_http_client()

    app = FastAPI(
        title="Clawdbot TTS Gateway",
        version=__version__,
        description="Text-to-speech for outbound chat replies, with gateway RPC and /tts commands.",
        lifespan=lifespan,
    )

    app.state.settings = settings
    app.state.http_client = TTSService.get_http_client()

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(gateway_router)
    app.include_router(commands_router)
    app.include_router(replies_router)

    @app.get("/health")
    async def healthcheck() -> dict[str, str]:
        return {"status": "ok"}

    return app


__all__ = ["create_app"]
