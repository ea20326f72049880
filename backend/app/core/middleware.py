"""
Request middleware — correlation IDs, access logging, recovery, timeouts, CORS.

Chain (outermost first), see `build_middleware`:
    1. RequestIDMiddleware       X-Request-ID in / out, stored in a ContextVar
    2. RequestLoggingMiddleware  START / END records via a request-scoped logger
    3. RecoveryMiddleware        unhandled exception → plain 500
    4. TimeoutMiddleware         cancels downstream after the budget → 504
    5. CORSMiddleware            origin policy, answers preflight itself
"""

from __future__ import annotations

import asyncio
import time
import uuid
from contextvars import ContextVar
from typing import List, Optional, Sequence

from starlette.middleware import Middleware
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.middleware.cors import CORSMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from backend.app.core.logging_config import (
    logger_from_context,
    logger_to_context,
    reset_logger_context,
)
from backend.app.httphandler import plainresp

REQUEST_ID_HEADER = "X-Request-ID"

_request_id: ContextVar[str] = ContextVar("request_id", default="")


def get_request_id() -> str:
    """Request id of the request being served ("" outside a request)."""
    return _request_id.get()


class RequestIDMiddleware(BaseHTTPMiddleware):
    """Propagate the caller's X-Request-ID or assign a fresh one."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
        request.state.request_id = request_id
        token = _request_id.set(request_id)
        try:
            response = await call_next(request)
        finally:
            _request_id.reset(token)
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """
    Log the start and end of every request.

    The logger bound here (path, method, request_id) becomes the
    request-scoped logger seen by everything downstream.
    """

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        start = time.perf_counter()

        logger = logger_from_context().bind(path=request.url.path, method=request.method)
        request_id = get_request_id()
        if request_id:
            logger = logger.bind(request_id=request_id)

        logger.info("START", extra={"user_agent": request.headers.get("user-agent", "")})

        token = logger_to_context(logger)
        status_code = 500
        try:
            response = await call_next(request)
            status_code = response.status_code
        finally:
            reset_logger_context(token)
            duration_ms = (time.perf_counter() - start) * 1000
            logger.info(
                "END",
                extra={"duration_ms": round(duration_ms, 3), "status_code": status_code},
            )
        return response


class RecoveryMiddleware(BaseHTTPMiddleware):
    """Turn any unhandled exception into a 500 without taking the process down."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        try:
            return await call_next(request)
        except Exception as exc:
            logger = logger_from_context()
            logger.exception("recovered from unhandled exception")
            return plainresp.internal_server_error(exc).respond(request)


class TimeoutMiddleware:
    """
    Bound downstream processing time.

    Pure ASGI so the downstream call runs in this task and is cancelled
    outright on expiry; store and upstream calls in flight are aborted with it.
    """

    def __init__(self, app: ASGIApp, timeout: float):
        self.app = app
        self.timeout = timeout

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        response_started = False

        async def send_wrapper(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            await asyncio.wait_for(self.app(scope, receive, send_wrapper), self.timeout)
        except asyncio.TimeoutError:
            logger = logger_from_context()
            logger.warning("request timed out", extra={"timeout_s": self.timeout})
            if response_started:
                return
            response = plainresp.error(None, "Gateway Timeout", 504).respond(Request(scope))
            await response(scope, receive, send)


CORS_ALLOWED_METHODS = ["GET", "POST", "PUT", "DELETE", "OPTIONS"]
CORS_ALLOWED_HEADERS = ["Accept", "Authorization", "Content-Type", "X-CSRF-Token"]
CORS_EXPOSED_HEADERS = ["Link"]


def build_middleware(
    *,
    timeout: float,
    allowed_origins: Optional[Sequence[str]] = None,
) -> List[Middleware]:
    """Middleware stack for the app (order matters — outermost first)."""
    return [
        Middleware(RequestIDMiddleware),
        Middleware(RequestLoggingMiddleware),
        Middleware(RecoveryMiddleware),
        Middleware(TimeoutMiddleware, timeout=timeout),
        Middleware(
            CORSMiddleware,
            allow_origins=list(allowed_origins or ["*"]),
            allow_methods=CORS_ALLOWED_METHODS,
            allow_headers=CORS_ALLOWED_HEADERS,
            expose_headers=CORS_EXPOSED_HEADERS,
            allow_credentials=False,
            max_age=300,
        ),
    ]
