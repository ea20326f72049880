"""
Post store — the capability set handlers call into.

`Querier` is the contract; every method takes the execution handle first so
the same querier works against the pool, a single connection, or a fake in
tests. `SqlQuerier` is the production implementation on an AsyncEngine.

Not-found reads surface as `sqlalchemy.exc.NoResultFound`; deletes report
the affected row count instead of raising.
"""

from __future__ import annotations

import uuid
from typing import Any, List, Protocol

from sqlalchemy import delete, func, insert, select, update
from sqlalchemy.ext.asyncio import AsyncEngine

from backend.app.posts.models import CreatePostParams, Post, PostRecord, UpdatePostParams

_COLUMNS = tuple(PostRecord.__table__.c)


class Querier(Protocol):
    async def create_post(self, db: Any, params: CreatePostParams) -> Post: ...

    async def list_posts(self, db: Any) -> List[Post]: ...

    async def get_post(self, db: Any, id: uuid.UUID) -> Post: ...

    async def update_post(self, db: Any, params: UpdatePostParams) -> Post: ...

    async def delete_post(self, db: Any, id: uuid.UUID) -> int: ...


class SqlQuerier:
    """Querier backed by SQLAlchemy Core statements."""

    async def create_post(self, db: AsyncEngine, params: CreatePostParams) -> Post:
        stmt = (
            insert(PostRecord)
            .values(id=params.id, title=params.title, description=params.description)
            .returning(*_COLUMNS)
        )
        async with db.begin() as conn:
            row = (await conn.execute(stmt)).one()
        return Post.model_validate(row)

    async def list_posts(self, db: AsyncEngine) -> List[Post]:
        stmt = select(*_COLUMNS).order_by(PostRecord.created_at, PostRecord.id)
        async with db.connect() as conn:
            rows = (await conn.execute(stmt)).all()
        return [Post.model_validate(row) for row in rows]

    async def get_post(self, db: AsyncEngine, id: uuid.UUID) -> Post:
        stmt = select(*_COLUMNS).where(PostRecord.id == id)
        async with db.connect() as conn:
            row = (await conn.execute(stmt)).one()
        return Post.model_validate(row)

    async def update_post(self, db: AsyncEngine, params: UpdatePostParams) -> Post:
        stmt = (
            update(PostRecord)
            .where(PostRecord.id == params.id)
            .values(
                title=params.title,
                description=params.description,
                updated_at=func.now(),
            )
            .returning(*_COLUMNS)
        )
        async with db.begin() as conn:
            row = (await conn.execute(stmt)).one()
        return Post.model_validate(row)

    async def delete_post(self, db: AsyncEngine, id: uuid.UUID) -> int:
        stmt = delete(PostRecord).where(PostRecord.id == id)
        async with db.begin() as conn:
            result = await conn.execute(stmt)
            return result.rowcount
