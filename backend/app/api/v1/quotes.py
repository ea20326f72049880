"""
Route: Quotes — proxy to an external random-quote API.
"""

from __future__ import annotations

from typing import Union

import httpx
from fastapi import APIRouter, FastAPI
from pydantic import BaseModel, TypeAdapter
from starlette.requests import Request

from backend.app.httphandler.handle import handle
from backend.app.httphandler.responder import Responder
from backend.app.ingestion.upstream import proxy_get


class Quote(BaseModel):
    id: int = 0
    quote: str = ""
    author: str = ""


_QUOTE = TypeAdapter(Quote)


class QuoteHandler:
    def __init__(self, client: httpx.AsyncClient, endpoint: str):
        self.client = client
        self.endpoint = endpoint

    def mount(self, router: Union[APIRouter, FastAPI]) -> None:
        router.add_route("/api/v1/quotes", handle(self.get), methods=["GET"])

    async def get(self, request: Request) -> Responder:
        return await proxy_get(self.client, self.endpoint, _QUOTE)
