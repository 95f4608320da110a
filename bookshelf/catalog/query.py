"""
Search, filter and sort for the catalogue, plus the tag index.

``BookQuery`` captures the three knobs exposed by ``GET /api/books``.
``build_books_statement()`` turns a query into a single ``SELECT`` over
the ``books`` table; tags are loaded afterwards by the store. The
``tag_index_statement()`` is recomputed on every call: there is no
incremental bookkeeping, callers simply ask again after a mutation.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel
from sqlalchemy import String, func
from sqlmodel import col, select
from sqlmodel.sql.expression import Select, SelectOfScalar

from .schemas import SortOrder
from .tables import BookRow, BookTagRow


class BookQuery(BaseModel):
    """Normalised list parameters. Empty strings mean "no filter"."""

    search: str = ""
    tag: str = ""
    sort: SortOrder = SortOrder.ASC

    @classmethod
    def from_params(
        cls,
        search: Optional[str] = None,
        tag: Optional[str] = None,
        sort: Optional[str] = None,
    ) -> "BookQuery":
        """Build a query from raw query-string values.

        Parameters
        ----------
        search : Optional[str]
            Case-insensitive substring of the title. Surrounding
            whitespace is ignored.
        tag : Optional[str]
            Exact tag the book must carry.
        sort : Optional[str]
            ``"desc"`` for Z–A, anything else for A–Z.

        Returns
        -------
        BookQuery
            The normalised query.
        """
        return cls(
            search=(search or "").strip(),
            tag=(tag or "").strip(),
            sort=SortOrder.parse(sort),
        )


def build_books_statement(query: BookQuery) -> Select:
    """Translate ``query`` into a statement selecting ``BookRow`` rows.

    The title match lowercases both sides and escapes ``%``/``_`` so the
    search text is matched literally. Equal titles fall back to creation
    order, then id, which keeps the ordering stable in both directions.
    """
    statement = select(BookRow)
    if query.search:
        title = func.lower(col(BookRow.title), type_=String)
        statement = statement.where(title.contains(query.search.lower(), autoescape=True))
    if query.tag:
        tagged = select(BookTagRow.book_id).where(BookTagRow.name == query.tag)
        statement = statement.where(col(BookRow.id).in_(tagged))

    title_order = col(BookRow.title).desc() if query.sort is SortOrder.DESC else col(BookRow.title).asc()
    return statement.order_by(title_order, col(BookRow.created_at).asc(), col(BookRow.id).asc())


def tag_index_statement() -> SelectOfScalar:
    """Distinct tag names currently in use, sorted."""
    return select(BookTagRow.name).distinct().order_by(col(BookTagRow.name).asc())
