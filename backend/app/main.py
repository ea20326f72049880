"""
Service entry point.

Run with:
    python -m backend.app.main

or, once installed:
    posts-server

Lifecycle: configuring → connecting-store → routing-ready → serving →
shutting-down → terminated. Any failure before serving, or an abnormal
shutdown, exits 1; a signalled, clean shutdown exits 0.
"""

from __future__ import annotations

import asyncio
import sys
from typing import Any

import httpx
import uvicorn
from fastapi import FastAPI
from pydantic import ValidationError
from starlette.requests import Request

# ── Core infrastructure ──
from backend.app.core.config import Settings, get_settings
from backend.app.core.database import close_db, connect, init_db
from backend.app.core.errors import ConfigError, ServiceError, register_error_handlers
from backend.app.core.logging_config import get_logger, setup_logging
from backend.app.core.middleware import build_middleware
from backend.app.core.server import Server, run_http_server

# ── Handlers ──
from backend.app.api.v1.posts import PostHandler
from backend.app.api.v1.quotes import QuoteHandler
from backend.app.api.v1.users import UserHandler
from backend.app.httphandler import plainresp
from backend.app.httphandler.handle import handle
from backend.app.httphandler.responder import Responder
from backend.app.posts.store import Querier, SqlQuerier

logger = get_logger(__name__)


async def ping(request: Request) -> Responder:
    return plainresp.success("pong")


def create_app(
    settings: Settings,
    *,
    db: Any,
    querier: Querier,
    http_client: httpx.AsyncClient,
) -> FastAPI:
    """Assemble middleware, error handlers and routes."""
    app = FastAPI(
        title=settings.APP_NAME,
        version=settings.APP_VERSION,
        docs_url=None,
        redoc_url=None,
        openapi_url=None,
        middleware=build_middleware(
            timeout=settings.request_timeout,
            allowed_origins=settings.CORS_ORIGINS,
        ),
    )

    register_error_handlers(app)

    app.add_route("/ping", handle(ping), methods=["GET"])
    PostHandler(db, querier).mount(app)
    UserHandler(http_client, settings.USER_API_URL).mount(app)
    QuoteHandler(http_client, settings.QUOTE_API_URL).mount(app)

    return app


def build_server(app: FastAPI, settings: Settings) -> Server:
    config = uvicorn.Config(
        app,
        host=settings.listen_host,
        port=settings.listen_port,
        timeout_keep_alive=max(1, int(settings.SERVER_IDLE_TIMEOUT)),
        lifespan="off",
        access_log=False,
        log_config=None,
    )
    return Server(config)


def build_http_client(settings: Settings) -> httpx.AsyncClient:
    """Shared client for the upstream proxies; redirects are followed."""
    return httpx.AsyncClient(timeout=settings.EXTERNAL_API_TIMEOUT, follow_redirects=True)


def load_settings() -> Settings:
    try:
        return get_settings()
    except ValidationError as exc:
        raise ConfigError(f"invalid configuration: {exc}") from exc


async def run(settings: Settings) -> None:
    log = setup_logging(
        settings.LOG_LEVEL,
        json_output=settings.is_production,
        version=settings.APP_VERSION,
        build_time=settings.BUILD_TIME,
    )
    log.info("Starting %s", settings.APP_NAME, extra={"environment": settings.ENVIRONMENT})

    engine = await connect(
        settings.DATABASE_URL,
        min_conns=settings.DATABASE_CONNS,
        max_conns=settings.DATABASE_CONNS,
        max_conn_idle_time=settings.DATABASE_IDLE_CONN_TIMEOUT,
    )
    try:
        if settings.DATABASE_CREATE_SCHEMA:
            await init_db(engine)

        async with build_http_client(settings) as http_client:
            app = create_app(settings, db=engine, querier=SqlQuerier(), http_client=http_client)
            server = build_server(app, settings)
            await run_http_server(server, shutdown_timeout=settings.SHUTDOWN_TIMEOUT)
    finally:
        await close_db(engine)

    log.info("Shut down %s", settings.APP_NAME)


def main() -> int:
    try:
        settings = load_settings()
        asyncio.run(run(settings))
    except ServiceError as exc:
        logger.error("service terminated: %s", exc, exc_info=exc.__cause__ or exc)
        return 1
    except Exception:
        logger.exception("service terminated by unexpected error")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
