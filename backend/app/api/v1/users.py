"""
Route: Users — proxy to an external user directory API.
"""

from __future__ import annotations

from typing import List, Union

import httpx
from fastapi import APIRouter, FastAPI
from pydantic import BaseModel, TypeAdapter
from starlette.requests import Request

from backend.app.httphandler.handle import handle
from backend.app.httphandler.responder import Responder
from backend.app.ingestion.upstream import proxy_get


class Address(BaseModel):
    street: str = ""
    suite: str = ""
    city: str = ""
    zipcode: str = ""


class User(BaseModel):
    id: int = 0
    name: str = ""
    username: str = ""
    email: str = ""
    address: Address = Address()
    phone: str = ""
    website: str = ""


_USERS = TypeAdapter(List[User])


class UserHandler:
    def __init__(self, client: httpx.AsyncClient, endpoint: str):
        self.client = client
        self.endpoint = endpoint

    def mount(self, router: Union[APIRouter, FastAPI]) -> None:
        router.add_route("/api/v1/users", handle(self.get), methods=["GET"])

    async def get(self, request: Request) -> Responder:
        return await proxy_get(self.client, self.endpoint, _USERS)
