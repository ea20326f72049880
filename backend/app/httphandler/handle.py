"""
Handler adapters — turn typed business functions into Starlette endpoints.

    handle(fn)                         fn(request) -> Responder | None
    handle_with_input(fn, Model)       fn(request, model_instance) -> Responder | None

A `None` result is written as an empty 204. Decode failure is terminal: the
client gets a plain-text 400 and the business function is never called.
"""

from __future__ import annotations

from typing import Awaitable, Callable, Optional, Type, TypeVar

from pydantic import BaseModel, ValidationError
from starlette.requests import Request
from starlette.responses import Response

from backend.app.httphandler.responder import Responder, http_error

T = TypeVar("T")
M = TypeVar("M", bound=BaseModel)

Endpoint = Callable[[Request], Awaitable[Response]]
RequestHandler = Callable[[Request], Awaitable[Optional[Responder]]]
RequestHandlerWithInput = Callable[[Request, T], Awaitable[Optional[Responder]]]
RequestDecodeFunc = Callable[[Request], Awaitable[T]]

INVALID_PAYLOAD = "Invalid request payload"


class DecodeError(ValueError):
    """Request body could not be decoded into the handler's input."""


def json_body_decode(model: Type[M]) -> RequestDecodeFunc[M]:
    """Decode function that validates the JSON body against `model`."""

    async def decode(request: Request) -> M:
        body = await request.body()
        try:
            return model.model_validate_json(body)
        except ValidationError as exc:
            raise DecodeError(f"fail to decode json: {exc}") from exc

    return decode


def _write(result: Optional[Responder], request: Request) -> Response:
    if result is None:
        return Response(status_code=204)
    return result.respond(request)


def handle(handler: RequestHandler) -> Endpoint:
    async def endpoint(request: Request) -> Response:
        return _write(await handler(request), request)

    endpoint.__name__ = getattr(handler, "__name__", "endpoint")
    return endpoint


def handle_with_input(
    handler: RequestHandlerWithInput[T],
    model: Optional[Type[BaseModel]] = None,
    *,
    decode: Optional[RequestDecodeFunc[T]] = None,
) -> Endpoint:
    if decode is None:
        if model is None:
            raise TypeError("handle_with_input needs a model or a decode function")
        decode = json_body_decode(model)  # type: ignore[assignment]

    async def endpoint(request: Request) -> Response:
        try:
            value = await decode(request)
        except DecodeError:
            return http_error(INVALID_PAYLOAD, 400)
        return _write(await handler(request, value), request)

    endpoint.__name__ = getattr(handler, "__name__", "endpoint")
    return endpoint
