"""
Route: Posts — CRUD over the posts store.

    POST   /api/v1/posts        create (server-generated id)
    GET    /api/v1/posts        list (`[]` when empty)
    GET    /api/v1/posts/{id}   fetch one
    PUT    /api/v1/posts/{id}   update title / description
    DELETE /api/v1/posts/{id}   delete, 200 with no body

Malformed ids are a 400 regardless of store state. Store failures are
reported as a generic 500; the cause only reaches the request logger.
"""

from __future__ import annotations

import uuid
from typing import Any, Optional, Union

from fastapi import APIRouter, FastAPI
from pydantic import BaseModel
from sqlalchemy.exc import NoResultFound
from starlette.requests import Request

from backend.app.core.logging_config import logger_from_context
from backend.app.httphandler import jsonresp
from backend.app.httphandler.handle import handle, handle_with_input
from backend.app.httphandler.responder import Responder, empty
from backend.app.posts.models import CreatePostParams as StoreCreateParams
from backend.app.posts.models import UpdatePostParams as StoreUpdateParams
from backend.app.posts.store import Querier

INVALID_ID = "Invalid ID format"
NOT_FOUND = "Post not found"


# ---------------------------------------------------------------------------
# Schemas
# ---------------------------------------------------------------------------

class CreatePostParams(BaseModel):
    title: str
    description: str = ""


class UpdatePostParams(BaseModel):
    title: str
    description: Optional[str] = None


# ---------------------------------------------------------------------------
# Handler
# ---------------------------------------------------------------------------

def _parse_id(request: Request) -> Union[uuid.UUID, Responder]:
    try:
        return uuid.UUID(request.path_params.get("id", ""))
    except ValueError as exc:
        return jsonresp.error(exc, INVALID_ID, 400).with_logger(logger_from_context())


def _internal_error(exc: Exception) -> Responder:
    return jsonresp.internal_server_error(exc).with_logger(logger_from_context())


class PostHandler:
    """CRUD handlers for blog posts; `db` is passed through to the querier."""

    def __init__(self, db: Any, querier: Querier):
        self.db = db
        self.querier = querier

    def mount(self, router: Union[APIRouter, FastAPI]) -> None:
        create = handle_with_input(self.create, CreatePostParams)
        update = handle_with_input(self.update, UpdatePostParams)
        router.add_route("/api/v1/posts", create, methods=["POST"])
        router.add_route("/api/v1/posts", handle(self.list), methods=["GET"])
        router.add_route("/api/v1/posts/{id}", handle(self.get), methods=["GET"])
        router.add_route("/api/v1/posts/{id}", update, methods=["PUT"])
        router.add_route("/api/v1/posts/{id}", handle(self.delete), methods=["DELETE"])

    async def create(self, request: Request, params: CreatePostParams) -> Responder:
        try:
            post = await self.querier.create_post(
                self.db,
                StoreCreateParams(
                    id=uuid.uuid4(),
                    title=params.title,
                    description=params.description,
                ),
            )
        except Exception as exc:
            return _internal_error(exc)
        return jsonresp.success(post)

    async def list(self, request: Request) -> Responder:
        try:
            posts = await self.querier.list_posts(self.db)
        except Exception as exc:
            return _internal_error(exc)
        return jsonresp.success(list(posts or []))

    async def get(self, request: Request) -> Responder:
        post_id = _parse_id(request)
        if isinstance(post_id, Responder):
            return post_id

        try:
            post = await self.querier.get_post(self.db, post_id)
        except NoResultFound as exc:
            return jsonresp.error(exc, NOT_FOUND, 404).with_logger(logger_from_context())
        except Exception as exc:
            return _internal_error(exc)
        return jsonresp.success(post)

    async def update(self, request: Request, params: UpdatePostParams) -> Responder:
        post_id = _parse_id(request)
        if isinstance(post_id, Responder):
            return post_id

        try:
            post = await self.querier.update_post(
                self.db,
                StoreUpdateParams(id=post_id, title=params.title, description=params.description),
            )
        except Exception as exc:
            return _internal_error(exc)
        return jsonresp.success(post)

    async def delete(self, request: Request) -> Responder:
        post_id = _parse_id(request)
        if isinstance(post_id, Responder):
            return post_id

        try:
            rows = await self.querier.delete_post(self.db, post_id)
        except Exception as exc:
            return _internal_error(exc)
        if rows == 0:
            return jsonresp.error(None, NOT_FOUND, 404).with_logger(logger_from_context())
        return empty()
