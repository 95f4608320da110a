"""
Data store for the catalogue API.

``BookStore`` is the only code that talks to the database. It converts
between the persistence rows in ``tables`` and the ``Book`` schema, and
owns the ``book_tags`` rows of each book: they are written on create,
replaced wholesale on update and removed on delete. Methods do not
commit; the caller decides when a unit of work is done.
"""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timezone
from typing import Dict, List, Optional, Sequence

from sqlmodel import Session, col, select

from .query import BookQuery, build_books_statement, tag_index_statement
from .schemas import Book, BookDraft
from .tables import BookRow, BookTagRow, utcnow


class BookStore:
    """Data-access layer for books."""

    def __init__(self, session: Session) -> None:
        self._session = session

    def commit(self) -> None:
        self._session.commit()

    def rollback(self) -> None:
        self._session.rollback()

    def create(self, draft: BookDraft) -> Book:
        row = BookRow(title=draft.title, author=draft.author, cover_image=draft.cover_image)
        self._session.add(row)
        self._session.flush()
        self._write_tags(row.id, draft.tags)
        return self._to_book(row, list(draft.tags))

    def get(self, book_id: str) -> Optional[Book]:
        row = self._session.get(BookRow, book_id)
        if row is None:
            return None
        return self._to_book(row, self._tags_for([row.id]).get(row.id, []))

    def update(self, book_id: str, draft: BookDraft) -> Optional[Book]:
        """Replace title, author, tags and cover of an existing book.

        Returns ``None`` when no book has this id.
        """
        row = self._session.get(BookRow, book_id)
        if row is None:
            return None
        row.title = draft.title
        row.author = draft.author
        row.cover_image = draft.cover_image
        row.updated_at = utcnow()
        self._session.add(row)
        self._delete_tags(book_id)
        self._write_tags(book_id, draft.tags)
        self._session.flush()
        return self._to_book(row, list(draft.tags))

    def delete(self, book_id: str) -> bool:
        row = self._session.get(BookRow, book_id)
        if row is None:
            return False
        self._delete_tags(book_id)
        self._session.delete(row)
        self._session.flush()
        return True

    def find(self, query: BookQuery) -> List[Book]:
        """Return every book matching ``query``, in the requested order."""
        rows = self._session.exec(build_books_statement(query)).all()
        tags = self._tags_for([row.id for row in rows])
        return [self._to_book(row, tags.get(row.id, [])) for row in rows]

    def distinct_tags(self) -> List[str]:
        return list(self._session.exec(tag_index_statement()).all())

    # -- helpers -----------------------------------------------------------

    def _write_tags(self, book_id: str, tags: Sequence[str]) -> None:
        for position, name in enumerate(tags):
            self._session.add(BookTagRow(book_id=book_id, position=position, name=name))

    def _delete_tags(self, book_id: str) -> None:
        statement = select(BookTagRow).where(BookTagRow.book_id == book_id)
        for tag in self._session.exec(statement).all():
            self._session.delete(tag)

    def _tags_for(self, book_ids: Sequence[str]) -> Dict[str, List[str]]:
        if not book_ids:
            return {}
        statement = (
            select(BookTagRow)
            .where(col(BookTagRow.book_id).in_(book_ids))
            .order_by(col(BookTagRow.book_id), col(BookTagRow.position))
        )
        grouped: Dict[str, List[str]] = defaultdict(list)
        for tag in self._session.exec(statement).all():
            grouped[tag.book_id].append(tag.name)
        return grouped

    @staticmethod
    def _to_book(row: BookRow, tags: List[str]) -> Book:
        return Book(
            id=row.id,
            title=row.title,
            author=row.author,
            tags=tags,
            cover_image=row.cover_image,
            created_at=_as_utc(row.created_at),
            updated_at=_as_utc(row.updated_at),
        )


def _as_utc(value: datetime) -> datetime:
    # SQLite hands timestamps back without tzinfo; they were written as UTC.
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
