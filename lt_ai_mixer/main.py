import argparse
import logging
from contextlib import asynccontextmanager

import httpx
import uvicorn
from fastapi import FastAPI

from lt_ai_mixer import __version__
from lt_ai_mixer.completion import CompletionClient
from lt_ai_mixer.config import Settings
from lt_ai_mixer.forwarder import Forwarder
from lt_ai_mixer.logging_config import LOGGER_NAME, parse_log_level, setup_logging
from lt_ai_mixer.routes.proxy import router as proxy_router


def create_app(
    settings: Settings | None = None,
    *,
    logger: logging.Logger | None = None,
    upstream_transport: httpx.AsyncBaseTransport | None = None,
    completion_transport: httpx.AsyncBaseTransport | None = None,
) -> FastAPI:
    """Build the app and its two outbound clients.

    The clients are shared by every request and closed on shutdown.
    """
    settings = settings or Settings()
    logger = logger or logging.getLogger(LOGGER_NAME)

    upstream_client = httpx.AsyncClient(
        timeout=settings.http_timeout_s, transport=upstream_transport
    )
    completion_client = httpx.AsyncClient(
        timeout=settings.http_timeout_s, transport=completion_transport
    )

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.debug("LT-AI-mixer started on port %s", settings.port)
        yield
        await upstream_client.aclose()
        await completion_client.aclose()

    # Docs routes off: every path belongs to the upstream.
    app = FastAPI(
        title="LT-AI-mixer",
        version=__version__,
        lifespan=lifespan,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
    )
    app.state.settings = settings
    app.state.forwarder = Forwarder(
        upstream_client,
        settings.languagetool_url,
        timeout_s=settings.http_timeout_s,
        logger=logger.getChild("forwarder"),
    )
    app.state.completion = CompletionClient(
        completion_client, settings, logger=logger.getChild("completion")
    )

    app.include_router(proxy_router)
    return app


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="lt-ai-mixer",
        description="LanguageTool proxy answering '//ai' requests with an LLM",
    )
    parser.add_argument("-port", "--port", type=int, default=None, help="Server port (default 8080)")
    parser.add_argument(
        "-log-level",
        "--log-level",
        default=None,
        help="Logging level (debug, info, warn, error, fatal, panic), default warn",
    )
    return parser.parse_args(argv)


def run(argv: list[str] | None = None) -> None:
    args = parse_args(argv)

    overrides = {}
    if args.port is not None:
        overrides["port"] = args.port
    if args.log_level is not None:
        overrides["log_level"] = args.log_level
    settings = Settings(**overrides)

    logger = setup_logging(
        log_level=settings.log_level,
        log_json=settings.log_json,
        log_dir=settings.log_dir,
        max_bytes=settings.log_max_bytes,
        backup_count=settings.log_backup_count,
    )

    app = create_app(settings, logger=logger)
    try:
        uvicorn.run(
            app,
            host=settings.host,
            port=settings.port,
            log_level=parse_log_level(settings.log_level),
            log_config=None,
            # Relayed responses carry the upstream's own Date and Server headers
            server_header=False,
            date_header=False,
        )
    except SystemExit as exc:
        # uvicorn exits on bind failures; a clean shutdown returns normally
        if exc.code not in (None, 0):
            logger.critical("Server error: exit code %s", exc.code)
        raise


if __name__ == "__main__":
    run()
