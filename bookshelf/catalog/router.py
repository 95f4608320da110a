"""
Route definitions for the catalogue API.

Endpoints under /api/books:
- GET    /             : list books (search by title, filter by tag, sort by title)
- GET    /tags         : distinct tags in use, sorted
- GET    /{book_id}    : get one book
- POST   /             : create a book
- PUT    /{book_id}    : replace a book's title/author/tags/cover
- DELETE /{book_id}    : delete a book

Failures are raised as ``BookshelfError`` subclasses and rendered as
``{"error": ...}`` by the handlers in ``bookshelf.errors``.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional, TypeVar

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from ..database import get_session
from ..errors import BookNotFoundError, StoreUnavailableError
from .query import BookQuery
from .schemas import Book, BookPayload
from .store import BookStore


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/books", tags=["books"])

T = TypeVar("T")


def get_store(session: Session = Depends(get_session)) -> BookStore:
    return BookStore(session)


def _guarded(store: BookStore, failure: str, operation: Callable[[], T]) -> T:
    """Run ``operation`` against the store, mapping database errors.

    Any ``SQLAlchemyError`` is logged, the transaction rolled back, and a
    ``StoreUnavailableError`` carrying ``failure`` is raised instead.
    """
    try:
        return operation()
    except SQLAlchemyError:
        logger.exception("%s", failure)
        try:
            store.rollback()
        except SQLAlchemyError:
            logger.warning("Rollback failed after: %s", failure)
        raise StoreUnavailableError(failure)


@router.get("", response_model=List[Book])
def list_books(
    search: Optional[str] = Query(default=None, description="Case-insensitive substring of the title"),
    tag: Optional[str] = Query(default=None, description="Only books carrying this tag"),
    sort: Optional[str] = Query(default="asc", description="asc (A–Z) or desc (Z–A)"),
    store: BookStore = Depends(get_store),
) -> List[Book]:
    """Return every matching book. There is no pagination."""
    query = BookQuery.from_params(search=search, tag=tag, sort=sort)
    return _guarded(store, "Failed to fetch books", lambda: store.find(query))


@router.get("/tags", response_model=List[str])
def list_tags(store: BookStore = Depends(get_store)) -> List[str]:
    return _guarded(store, "Failed to fetch tags", store.distinct_tags)


@router.get("/{book_id}", response_model=Book)
def get_book(book_id: str, store: BookStore = Depends(get_store)) -> Book:
    book = _guarded(store, "Failed to fetch book", lambda: store.get(book_id))
    if book is None:
        raise BookNotFoundError()
    return book


@router.post("", response_model=Book, status_code=status.HTTP_201_CREATED)
def create_book(payload: BookPayload, store: BookStore = Depends(get_store)) -> Book:
    draft = payload.to_draft()

    def _create() -> Book:
        book = store.create(draft)
        store.commit()
        return book

    book = _guarded(store, "Failed to create book", _create)
    logger.info("Created book %s (%r)", book.id, book.title)
    return book


@router.put("/{book_id}", response_model=Book)
def update_book(book_id: str, payload: BookPayload, store: BookStore = Depends(get_store)) -> Book:
    draft = payload.to_draft()

    def _update() -> Optional[Book]:
        book = store.update(book_id, draft)
        if book is not None:
            store.commit()
        return book

    book = _guarded(store, "Failed to update book", _update)
    if book is None:
        raise BookNotFoundError()
    logger.info("Updated book %s", book_id)
    return book


@router.delete("/{book_id}")
def delete_book(book_id: str, store: BookStore = Depends(get_store)) -> Dict[str, str]:
    def _delete() -> bool:
        deleted = store.delete(book_id)
        if deleted:
            store.commit()
        return deleted

    if not _guarded(store, "Failed to delete book", _delete):
        raise BookNotFoundError()
    logger.info("Deleted book %s", book_id)
    return {"message": "Book deleted successfully"}
