"""Plain-text responders."""

from __future__ import annotations

from typing import Optional

from starlette.requests import Request
from starlette.responses import Response

from backend.app.httphandler.responder import Responder, http_error

INTERNAL_SERVER_ERROR = "Internal Server Error"


class SuccessResponder(Responder):
    def __init__(self, body: str, status_code: int = 200):
        super().__init__(status_code)
        self.body = body

    def with_status(self, status_code: int) -> "SuccessResponder":
        self.status_code = status_code
        return self

    def _build(self, request: Request) -> Response:
        self._log_sent(self.body)
        return Response(content=self.body, status_code=self.status_code, media_type="text/plain")


class ErrorResponder(Responder):
    def __init__(self, err: Optional[BaseException], message: str, status_code: int):
        super().__init__(status_code)
        self.err = err
        self.message = message

    def _build(self, request: Request) -> Response:
        if self.logger is not None:
            self.logger.error(
                "Error handling request",
                extra={"error": repr(self.err) if self.err is not None else None},
            )
            self._log_sent(self.message)
        return http_error(self.message, self.status_code)


def success(body: str) -> SuccessResponder:
    return SuccessResponder(body)


def error(err: Optional[BaseException], message: str, status_code: int) -> ErrorResponder:
    return ErrorResponder(err, message, status_code)


def internal_server_error(err: Optional[BaseException]) -> ErrorResponder:
    return ErrorResponder(err, INTERNAL_SERVER_ERROR, 500)
