"""
JSON responders.

    jsonresp.success(post)                        → 200 + JSON body
    jsonresp.error(exc, "Post not found", 404)    → 404 + {"error": "Post not found"}
    jsonresp.internal_server_error(exc)           → 500 + {"error": "Internal Server Error"}

The `err` passed to the error builders is only ever logged (when a logger is
attached); the client sees `message`.
"""

from __future__ import annotations

from typing import Any, Optional, Tuple

from pydantic_core import PydanticSerializationError, to_json
from starlette.requests import Request
from starlette.responses import Response

from backend.app.httphandler.responder import LoggerLike, Responder

INTERNAL_SERVER_ERROR = "Internal Server Error"
_MARSHAL_FAILED_BODY = b'{"error":"Internal Server Error"}'


def _write_json(
    data: Any, status_code: int, logger: Optional[LoggerLike]
) -> Tuple[Response, bool]:
    """Marshal `data`; falls back to a fixed 500 body if that fails."""
    try:
        body = to_json(data)
    except (PydanticSerializationError, TypeError, ValueError) as exc:
        if logger is not None:
            logger.error(
                "Failed to encode JSON response",
                extra={"error": repr(exc), "data": repr(data)},
            )
        fallback = Response(
            content=_MARSHAL_FAILED_BODY,
            status_code=500,
            media_type="application/json",
        )
        return fallback, False
    return Response(content=body, status_code=status_code, media_type="application/json"), True


class SuccessResponder(Responder):
    def __init__(self, data: Any, status_code: int = 200):
        super().__init__(status_code)
        self.data = data

    def with_status(self, status_code: int) -> "SuccessResponder":
        self.status_code = status_code
        return self

    def _build(self, request: Request) -> Response:
        response, ok = _write_json(self.data, self.status_code, self.logger)
        if ok:
            self._log_sent(response.body)
        return response


class ErrorResponder(Responder):
    def __init__(self, err: Optional[BaseException], message: str, status_code: int):
        super().__init__(status_code)
        self.err = err
        self.message = message

    def _build(self, request: Request) -> Response:
        response, ok = _write_json({"error": self.message}, self.status_code, self.logger)
        if ok and self.logger is not None:
            self.logger.error(
                "Sent error HTTP response",
                extra={"error": repr(self.err) if self.err is not None else None},
            )
            self._log_sent(response.body)
        return response


def success(data: Any) -> SuccessResponder:
    return SuccessResponder(data)


def error(err: Optional[BaseException], message: str, status_code: int) -> ErrorResponder:
    return ErrorResponder(err, message, status_code)


def internal_server_error(err: Optional[BaseException]) -> ErrorResponder:
    return ErrorResponder(err, INTERNAL_SERVER_ERROR, 500)
