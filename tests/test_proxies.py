"""
test_proxies.py — quote and user proxy endpoints against a mocked upstream.

Covers:
    • Successful fetch → decoded payload forwarded as JSON
    • Redirects followed to the final upstream response
    • Upstream non-200 → same status, fixed error message (204 / 304 → 502)
    • Undecodable upstream body → 500
    • Transport failure / unbuildable request → 500

Run with:
    pytest tests/test_proxies.py -v
"""

from __future__ import annotations

import json
from typing import AsyncIterator

import httpx
import pytest
from respx import MockRouter

from backend.app.api.v1.quotes import QuoteHandler
from backend.app.api.v1.users import UserHandler
from backend.app.ingestion.upstream import (
    FAILED_CREATE,
    FAILED_DECODE,
    FAILED_FETCH,
    FAILED_REQUEST,
)
from backend.app.main import build_http_client

from conftest import make_request, make_settings

QUOTE_URL = "https://quotes.test/quotes/random"
USER_URL = "https://users.test/users"

QUOTE = {"id": 7, "quote": "Simplicity is prerequisite for reliability.", "author": "Dijkstra"}

USERS = [
    {
        "id": 1,
        "name": "Leanne Graham",
        "username": "Bret",
        "email": "Sincere@april.biz",
        "address": {
            "street": "Kulas Light",
            "suite": "Apt. 556",
            "city": "Gwenborough",
            "zipcode": "92998-3874",
            "geo": {"lat": "-37.3159", "lng": "81.1496"},
        },
        "phone": "1-770-736-8031 x56442",
        "website": "hildegard.org",
        "company": {"name": "Romaguera-Crona"},
    }
]


@pytest.fixture
async def http_client() -> AsyncIterator[httpx.AsyncClient]:
    async with build_http_client(make_settings()) as client:
        yield client


async def _call(handler):
    request = make_request()
    response = (await handler.get(request)).respond(request)
    return response, json.loads(response.body)


# ═══════════════════════════════════════════════════════════════════════════
# Section 1: Quotes
# ═══════════════════════════════════════════════════════════════════════════

class TestQuoteProxy:

    @pytest.mark.asyncio
    async def test_success(self, http_client, respx_mock: MockRouter):
        respx_mock.get(QUOTE_URL).mock(return_value=httpx.Response(200, json=QUOTE))

        response, body = await _call(QuoteHandler(http_client, QUOTE_URL))

        assert response.status_code == 200
        assert body == QUOTE

    @pytest.mark.asyncio
    async def test_missing_fields_default(self, http_client, respx_mock: MockRouter):
        respx_mock.get(QUOTE_URL).mock(return_value=httpx.Response(200, json={"quote": "hi"}))

        _, body = await _call(QuoteHandler(http_client, QUOTE_URL))

        assert body == {"id": 0, "quote": "hi", "author": ""}

    @pytest.mark.parametrize("status", [404, 500, 503])
    @pytest.mark.asyncio
    async def test_upstream_status_forwarded(self, http_client, respx_mock: MockRouter, status):
        respx_mock.get(QUOTE_URL).mock(return_value=httpx.Response(status, text="upstream says no"))

        response, body = await _call(QuoteHandler(http_client, QUOTE_URL))

        assert response.status_code == status
        assert body == {"error": FAILED_FETCH}

    @pytest.mark.parametrize("status", [204, 304])
    @pytest.mark.asyncio
    async def test_bodyless_upstream_status_is_502(self, http_client, respx_mock: MockRouter, status):
        respx_mock.get(QUOTE_URL).mock(return_value=httpx.Response(status))

        response, body = await _call(QuoteHandler(http_client, QUOTE_URL))

        assert response.status_code == 502
        assert body == {"error": FAILED_FETCH}

    @pytest.mark.asyncio
    async def test_redirect_followed(self, http_client, respx_mock: MockRouter):
        moved_url = "https://quotes.test/v2/quotes/random"
        respx_mock.get(QUOTE_URL).mock(
            return_value=httpx.Response(301, headers={"Location": moved_url})
        )
        respx_mock.get(moved_url).mock(return_value=httpx.Response(200, json=QUOTE))

        response, body = await _call(QuoteHandler(http_client, QUOTE_URL))

        assert response.status_code == 200
        assert body == QUOTE

    @pytest.mark.asyncio
    async def test_invalid_json(self, http_client, respx_mock: MockRouter):
        respx_mock.get(QUOTE_URL).mock(return_value=httpx.Response(200, text="invalid json"))

        response, body = await _call(QuoteHandler(http_client, QUOTE_URL))

        assert response.status_code == 500
        assert body == {"error": FAILED_DECODE}

    @pytest.mark.asyncio
    async def test_transport_error(self, http_client, respx_mock: MockRouter):
        respx_mock.get(QUOTE_URL).mock(side_effect=httpx.ConnectError("connection refused"))

        response, body = await _call(QuoteHandler(http_client, QUOTE_URL))

        assert response.status_code == 500
        assert body == {"error": FAILED_REQUEST}

    @pytest.mark.asyncio
    async def test_unbuildable_request(self, http_client):
        response, body = await _call(QuoteHandler(http_client, "http://quotes.test/\x00"))

        assert response.status_code == 500
        assert body == {"error": FAILED_CREATE}


# ═══════════════════════════════════════════════════════════════════════════
# Section 2: Users
# ═══════════════════════════════════════════════════════════════════════════

class TestUserProxy:

    @pytest.mark.asyncio
    async def test_success_drops_unmodelled_fields(self, http_client, respx_mock: MockRouter):
        respx_mock.get(USER_URL).mock(return_value=httpx.Response(200, json=USERS))

        response, body = await _call(UserHandler(http_client, USER_URL))

        assert response.status_code == 200
        assert len(body) == 1
        user = body[0]
        assert user["username"] == "Bret"
        assert user["address"] == {
            "street": "Kulas Light",
            "suite": "Apt. 556",
            "city": "Gwenborough",
            "zipcode": "92998-3874",
        }
        assert "company" not in user

    @pytest.mark.asyncio
    async def test_empty_list(self, http_client, respx_mock: MockRouter):
        respx_mock.get(USER_URL).mock(return_value=httpx.Response(200, json=[]))

        response, body = await _call(UserHandler(http_client, USER_URL))

        assert response.status_code == 200
        assert body == []

    @pytest.mark.asyncio
    async def test_upstream_500(self, http_client, respx_mock: MockRouter):
        respx_mock.get(USER_URL).mock(return_value=httpx.Response(500))

        response, body = await _call(UserHandler(http_client, USER_URL))

        assert response.status_code == 500
        assert body == {"error": FAILED_FETCH}

    @pytest.mark.asyncio
    async def test_wrong_shape_is_decode_error(self, http_client, respx_mock: MockRouter):
        respx_mock.get(USER_URL).mock(return_value=httpx.Response(200, json={"id": 1}))

        response, body = await _call(UserHandler(http_client, USER_URL))

        assert response.status_code == 500
        assert body == {"error": FAILED_DECODE}

    @pytest.mark.asyncio
    async def test_timeout_is_request_failure(self, http_client, respx_mock: MockRouter):
        respx_mock.get(USER_URL).mock(side_effect=httpx.ReadTimeout("timed out"))

        response, body = await _call(UserHandler(http_client, USER_URL))

        assert response.status_code == 500
        assert body == {"error": FAILED_REQUEST}
