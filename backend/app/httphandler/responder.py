"""
Responder contract — a handler result that knows how to render itself.

Every variant carries the same refinements: extra headers (insertion order,
repeated keys kept), cookies (insertion order) and an optional logger. The
variant decides the body and status in `_build`; `respond` applies the
accumulated headers and cookies and returns the finished response.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime
from typing import List, Literal, Optional, Tuple, TypeVar, Union

from starlette.requests import Request
from starlette.responses import Response

LoggerLike = Union[logging.Logger, logging.LoggerAdapter]

R = TypeVar("R", bound="Responder")


@dataclass
class Cookie:
    """Cookie to set on the response (mirrors Response.set_cookie)."""

    key: str
    value: str = ""
    max_age: Optional[int] = None
    expires: Optional[Union[datetime, str, int]] = None
    path: Optional[str] = "/"
    domain: Optional[str] = None
    secure: bool = False
    httponly: bool = False
    samesite: Optional[Literal["lax", "strict", "none"]] = "lax"


class Responder(ABC):
    """Result of handling a request."""

    def __init__(self, status_code: int):
        self.status_code = status_code
        self.logger: Optional[LoggerLike] = None
        self._headers: List[Tuple[str, str]] = []
        self._cookies: List[Cookie] = []

    def with_header(self: R, key: str, value: str) -> R:
        self._headers.append((key, value))
        return self

    def with_cookie(self: R, cookie: Cookie) -> R:
        self._cookies.append(cookie)
        return self

    def with_logger(self: R, logger: LoggerLike) -> R:
        self.logger = logger
        return self

    def respond(self, request: Request) -> Response:
        response = self._build(request)
        for key, value in self._headers:
            response.headers.append(key, value)
        for cookie in self._cookies:
            response.set_cookie(
                cookie.key,
                cookie.value,
                max_age=cookie.max_age,
                expires=cookie.expires,
                path=cookie.path,
                domain=cookie.domain,
                secure=cookie.secure,
                httponly=cookie.httponly,
                samesite=cookie.samesite,
            )
        return response

    @abstractmethod
    def _build(self, request: Request) -> Response:
        """Body and status for this variant."""

    def _log_sent(self, body: Union[str, bytes]) -> None:
        if self.logger is None:
            return
        if isinstance(body, bytes):
            body = body.decode("utf-8", errors="replace")
        self.logger.info(
            "Sent HTTP response",
            extra={"status_code": self.status_code, "response_body": body},
        )


class EmptyResponder(Responder):
    """Explicit "no body" result; 200 unless refined."""

    def with_status(self, status_code: int) -> "EmptyResponder":
        self.status_code = status_code
        return self

    def _build(self, request: Request) -> Response:
        self._log_sent(b"")
        return Response(status_code=self.status_code)


def empty(status_code: int = 200) -> EmptyResponder:
    return EmptyResponder(status_code)


def http_error(message: str, status_code: int) -> Response:
    """Plain-text error body with the given status."""
    return Response(
        content=message,
        status_code=status_code,
        media_type="text/plain",
        headers={"X-Content-Type-Options": "nosniff"},
    )
