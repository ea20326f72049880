"""
Post data structures.

    PostRecord        ORM mapping of the `posts` table
    Post              wire shape returned by the API
    CreatePostParams  store input for inserts (id generated by the caller)
    UpdatePostParams  store input for updates
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict
from sqlalchemy import DateTime, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column

from backend.app.core.database import Base


class PostRecord(Base):
    __tablename__ = "posts"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True)
    title: Mapped[str] = mapped_column(Text, nullable=False)
    description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now()
    )


class Post(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: uuid.UUID
    title: str
    description: Optional[str] = None
    created_at: datetime
    updated_at: datetime


@dataclass(frozen=True)
class CreatePostParams:
    id: uuid.UUID
    title: str
    description: Optional[str] = None


@dataclass(frozen=True)
class UpdatePostParams:
    id: uuid.UUID
    title: str
    description: Optional[str] = None
