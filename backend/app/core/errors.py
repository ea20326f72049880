"""
Centralised error handling — exception hierarchy + FastAPI handlers.

Provides:
    • Startup / lifecycle exception classes
    • Framework HTTP errors (unknown route, wrong method) rendered in the
      same {"error": "..."} shape the handlers use

Handlers themselves never raise for client-visible failures: they return an
error Responder carrying a safe message, with the original cause kept for
logging only.

Usage:
    from backend.app.core.errors import DatabaseConnectError, register_error_handlers

    raise DatabaseConnectError("ping failed") from exc
"""

from __future__ import annotations

from fastapi import FastAPI, Request
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import Response

from backend.app.httphandler import jsonresp


# ═══════════════════════════════════════════════════════════════════════════
# Exception Hierarchy
# ═══════════════════════════════════════════════════════════════════════════

class ServiceError(Exception):
    """Base exception for all application errors."""


class ConfigError(ServiceError):
    """Required settings missing or malformed."""


class DatabaseConnectError(ServiceError):
    """Store pool could not be created or failed its liveness probe."""


class ServerError(ServiceError):
    """Listener failed or stopped without a shutdown request."""


# ═══════════════════════════════════════════════════════════════════════════
# FastAPI Exception Handlers
# ═══════════════════════════════════════════════════════════════════════════

def register_error_handlers(app: FastAPI) -> None:
    """Register all exception handlers on the FastAPI app."""

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_error(request: Request, exc: StarletteHTTPException) -> Response:
        response = jsonresp.error(exc, str(exc.detail), exc.status_code).respond(request)
        if exc.headers:
            response.headers.update(exc.headers)
        return response
