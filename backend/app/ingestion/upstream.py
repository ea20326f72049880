"""
upstream.py — read-only proxying of third-party JSON APIs.

Each call fetches fresh: nothing is cached or persisted. The outbound request
runs in the caller's task, so cancelling the inbound request (timeout
middleware, client disconnect) cancels the upstream call with it.

Error Handling Strategy
========================
    request cannot be built       → 500 "failed to create request"
    transport failure             → 500 "failed to make request"
    upstream status != 200        → same status, "failed to fetch data from external API"
                                    (upstream body is discarded; statuses that cannot
                                    carry a body, 204 / 205 / 304, become 502)
    body does not match the model → 500 "failed to decode response"
"""

from __future__ import annotations

from typing import Any

import httpx
from pydantic import TypeAdapter, ValidationError

from backend.app.core.logging_config import logger_from_context
from backend.app.httphandler import jsonresp
from backend.app.httphandler.responder import Responder

FAILED_CREATE = "failed to create request"
FAILED_REQUEST = "failed to make request"
FAILED_FETCH = "failed to fetch data from external API"
FAILED_DECODE = "failed to decode response"

# Statuses whose responses must not carry a body.
_BODYLESS_STATUSES = frozenset({204, 205, 304})


async def proxy_get(
    client: httpx.AsyncClient,
    endpoint: str,
    adapter: TypeAdapter[Any],
) -> Responder:
    """GET `endpoint` and forward the decoded payload as JSON."""
    logger = logger_from_context().bind(upstream=endpoint)

    try:
        upstream_request = client.build_request("GET", endpoint)
    except (httpx.InvalidURL, TypeError, ValueError) as exc:
        return jsonresp.error(exc, FAILED_CREATE, 500).with_logger(logger)

    try:
        response = await client.send(upstream_request)
    except httpx.HTTPError as exc:
        return jsonresp.error(exc, FAILED_REQUEST, 500).with_logger(logger)

    if response.status_code != 200:
        status_code = response.status_code
        if status_code < 200 or status_code in _BODYLESS_STATUSES:
            status_code = 502
        return jsonresp.error(None, FAILED_FETCH, status_code).with_logger(
            logger.bind(upstream_status=response.status_code)
        )

    try:
        payload = adapter.validate_json(response.content)
    except ValidationError as exc:
        return jsonresp.error(exc, FAILED_DECODE, 500).with_logger(logger)

    return jsonresp.success(payload)
