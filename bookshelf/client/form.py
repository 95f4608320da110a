"""
Create/edit form for a single book.

The form keeps what the user typed in a ``BookFormState`` snapshot and
only turns it into a request body at submit time: title and author are
trimmed and must not be empty, the comma-separated tags text is split
into a list, and an uploaded cover file is embedded inline as a
``data:`` URI. A failed submit leaves every field as it was so the user
can correct and retry.
"""

from __future__ import annotations

import base64
import logging
import mimetypes
from dataclasses import dataclass, replace
from pathlib import Path
from typing import List, Optional, Union

from .api import ApiError, ApiNotFoundError, BooksApi, book_body


logger = logging.getLogger(__name__)

REQUIRED_FIELDS_MESSAGE = "Title and author are required."
DEFAULT_MEDIA_TYPE = "application/octet-stream"


def parse_tags(text: str) -> List[str]:
    """Split ``"a, b ,, c"`` into ``["a", "b", "c"]``. Duplicates are kept."""
    return [tag.strip() for tag in (text or "").split(",") if tag.strip()]


def format_tags(tags: List[str]) -> str:
    return ", ".join(tags)


def encode_data_uri(content: bytes, media_type: Optional[str] = None) -> str:
    payload = base64.b64encode(content).decode("ascii")
    return f"data:{media_type or DEFAULT_MEDIA_TYPE};base64,{payload}"


def read_cover_file(path: Union[str, Path]) -> str:
    """Read an image file and return it as a ``data:`` URI."""
    path = Path(path)
    media_type, _ = mimetypes.guess_type(path.name)
    return encode_data_uri(path.read_bytes(), media_type)


@dataclass(frozen=True)
class BookFormState:
    title: str = ""
    author: str = ""
    tags: str = ""
    cover_image: str = ""
    error: Optional[str] = None
    submitting: bool = False
    loading: bool = False


def validate(state: BookFormState) -> Optional[str]:
    """Return the message to show, or ``None`` when the form can be sent."""
    if not state.title.strip() or not state.author.strip():
        return REQUIRED_FIELDS_MESSAGE
    return None


_EDITABLE = ("title", "author", "tags", "cover_image")


class BookForm:
    """Form controller for creating a book, or editing ``book_id``.

    ``load()`` and ``submit()`` return where the page should navigate
    next, or ``None`` to stay on the form.
    """

    def __init__(self, api: BooksApi, book_id: Optional[str] = None) -> None:
        self._api = api
        self.book_id = book_id
        self._state = BookFormState(loading=book_id is not None)

    @property
    def state(self) -> BookFormState:
        return self._state

    @property
    def is_edit(self) -> bool:
        return self.book_id is not None

    def update(self, **fields: str) -> None:
        unknown = set(fields) - set(_EDITABLE)
        if unknown:
            raise TypeError(f"Unknown form field(s): {', '.join(sorted(unknown))}")
        self._state = replace(self._state, **fields)

    def attach_cover(self, content: bytes, media_type: Optional[str] = None) -> None:
        self._state = replace(self._state, cover_image=encode_data_uri(content, media_type))

    def attach_cover_file(self, path: Union[str, Path]) -> None:
        self._state = replace(self._state, cover_image=read_cover_file(path))

    async def load(self) -> Optional[str]:
        """Fill the form from the stored book (edit mode only).

        Returns ``"/"`` when the book cannot be loaded; the reason is left
        in ``state.error``.
        """
        if self.book_id is None:
            return None
        try:
            book = await self._api.get_book(self.book_id)
        except ApiNotFoundError:
            self._state = replace(self._state, loading=False, error="Book not found")
            return "/"
        except ApiError as exc:
            logger.error("Error fetching book %s: %s", self.book_id, exc)
            self._state = replace(self._state, loading=False, error="Failed to load book")
            return "/"
        self._state = replace(
            self._state,
            title=book.title,
            author=book.author,
            tags=format_tags(book.tags),
            cover_image=book.cover_image or "",
            loading=False,
            error=None,
        )
        return None

    async def submit(self) -> Optional[str]:
        """Validate and send the form.

        Returns the shelf URL carrying the success toast, or ``None`` when
        validation or the request failed.
        """
        self._state = replace(self._state, error=None)
        problem = validate(self._state)
        if problem:
            self._state = replace(self._state, error=problem)
            return None

        state = self._state
        body = book_body(
            title=state.title.strip(),
            author=state.author.strip(),
            tags=parse_tags(state.tags),
            cover_image=state.cover_image,
        )
        self._state = replace(self._state, submitting=True)
        try:
            if self.book_id is None:
                await self._api.create_book(body)
            else:
                await self._api.update_book(self.book_id, body)
        except ApiError as exc:
            action = "updating" if self.is_edit else "creating"
            logger.error("Error %s book: %s", action, exc)
            self._state = replace(self._state, error=exc.message)
            return None
        finally:
            self._state = replace(self._state, submitting=False)
        return "/?toast=book-updated" if self.is_edit else "/?toast=book-created"
