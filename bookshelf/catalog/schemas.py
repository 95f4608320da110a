"""
Pydantic schema definitions for the catalog module.

The ``Book`` model is what the API returns and what the client parses.
Field names are snake_case in Python and camelCase on the wire
(``coverImage``, ``createdAt``, ``updatedAt``); both spellings are
accepted when validating. ``BookPayload`` is the create/update request
body. Its fields are deliberately loose so that a missing title or author
reaches our own validation (a 400 with a readable message) instead of the
framework's generic 422. ``BookPayload.to_draft()`` produces the cleaned
``BookDraft`` the store persists.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ..errors import BookValidationError


class SortOrder(str, Enum):
    """Direction of the title ordering."""

    ASC = "asc"
    DESC = "desc"

    @classmethod
    def parse(cls, value: Optional[str]) -> "SortOrder":
        """Anything other than ``"desc"`` sorts ascending."""
        if (value or "").strip().lower() == cls.DESC.value:
            return cls.DESC
        return cls.ASC


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class Book(CamelModel):
    """A single catalogue entry.

    ``tags`` keeps the submitted order and may contain duplicates; the
    de-duplicated view across all books is the tag index. ``cover_image``
    is either ``None`` or a non-empty URL / ``data:`` URI.
    """

    id: str
    title: str
    author: str
    tags: List[str] = Field(default_factory=list)
    cover_image: Optional[str] = None
    created_at: datetime
    updated_at: datetime


class BookPayload(CamelModel):
    """Request body for ``POST /api/books`` and ``PUT /api/books/{id}``."""

    title: Optional[str] = None
    author: Optional[str] = None
    tags: Optional[List[str]] = None
    cover_image: Optional[str] = None

    def to_draft(self) -> "BookDraft":
        """Validate and normalise the payload.

        Raises
        ------
        BookValidationError
            If the title or the author is missing or blank.
        """
        title = (self.title or "").strip()
        author = (self.author or "").strip()
        if not title or not author:
            raise BookValidationError("Title and author are required")
        tags = [t.strip() for t in (self.tags or []) if t and t.strip()]
        cover = (self.cover_image or "").strip() or None
        return BookDraft(title=title, author=author, tags=tags, cover_image=cover)


class BookDraft(BaseModel):
    """A validated book ready to be written to the store."""

    title: str
    author: str
    tags: List[str] = Field(default_factory=list)
    cover_image: Optional[str] = None
