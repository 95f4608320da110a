"""
Persistence models for the catalogue.

A book's tags live in their own table, one row per occurrence, so that
the tag filter and the tag index are plain SQL. ``position`` keeps the
order the tags were submitted in; duplicates are stored as separate rows.
"""

from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import Column, Text
from sqlmodel import Field, SQLModel


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class BookRow(SQLModel, table=True):
    __tablename__ = "books"

    id: str = Field(
        default_factory=lambda: str(uuid.uuid4()),
        primary_key=True,
    )
    title: str = Field(index=True)
    author: str
    # Data URIs can be large, so no length limit.
    cover_image: Optional[str] = Field(default=None, sa_column=Column(Text, nullable=True))
    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)


class BookTagRow(SQLModel, table=True):
    __tablename__ = "book_tags"

    id: Optional[int] = Field(default=None, primary_key=True)
    book_id: str = Field(foreign_key="books.id", index=True)
    position: int
    name: str = Field(index=True)
