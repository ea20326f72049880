"""Redirect responder."""

from __future__ import annotations

from starlette.requests import Request
from starlette.responses import RedirectResponse, Response

from backend.app.httphandler.responder import Responder


class RedirectResponder(Responder):
    def __init__(self, url: str, status_code: int):
        super().__init__(status_code)
        self.url = url

    def _build(self, request: Request) -> Response:
        response = RedirectResponse(self.url, status_code=self.status_code)
        if self.logger is not None:
            self.logger.info(
                "Sent HTTP redirect",
                extra={"status_code": self.status_code, "redirect_url": self.url},
            )
        return response


def redirect(url: str, status_code: int = 302) -> RedirectResponder:
    return RedirectResponder(url, status_code)
