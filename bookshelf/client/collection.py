"""
State and behaviour of the shelf page.

The page's state is a single immutable ``CollectionState`` snapshot. The
``BookCollectionView`` owns the current snapshot and replaces it through
its methods; renderers subscribe and receive every new snapshot. Values
shown on screen that depend on the snapshot (toolbar text, tag selector
options) are plain functions of it and are recomputed on each render.

List fetches follow ``idle -> loading -> loaded | error`` and go back to
``loading`` whenever the search text, the selected tag or the sort order
changes. Search keystrokes are debounced. A fetch that is overtaken by a
newer one is not cancelled, but its response is dropped when it arrives,
so the list always reflects the latest filters.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Dict, List, Optional, Set, Tuple

from ..catalog.schemas import Book, SortOrder
from .api import ApiError, BooksApi


logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE = 0.3
DEFAULT_TOAST_DURATION = 2.8


class LoadStatus(str, Enum):
    IDLE = "idle"
    LOADING = "loading"
    LOADED = "loaded"
    ERROR = "error"


class ToastVariant(str, Enum):
    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True)
class Toast:
    message: str
    variant: ToastVariant


# Keyed by the ``toast`` query parameter the form pages redirect with.
TOAST_PRESETS: Dict[str, Toast] = {
    "book-created": Toast("Book added successfully!", ToastVariant.SUCCESS),
    "book-updated": Toast("Book updated successfully!", ToastVariant.SUCCESS),
    "book-deleted": Toast("Book removed from your shelf.", ToastVariant.SUCCESS),
    "book-error": Toast("Something went wrong. Please try again.", ToastVariant.ERROR),
}


@dataclass(frozen=True)
class CollectionState:
    status: LoadStatus = LoadStatus.IDLE
    books: Tuple[Book, ...] = ()
    tags: Tuple[str, ...] = ()
    search: str = ""
    selected_tag: str = ""
    sort: SortOrder = SortOrder.ASC
    error: Optional[str] = None
    pending_delete: Optional[Book] = None
    delete_loading: bool = False
    toast: Optional[Toast] = None


Listener = Callable[[CollectionState], None]


# -- derived values ----------------------------------------------------------

def toolbar_copy(state: CollectionState) -> str:
    count = len(state.books)
    if not count and (state.search or state.selected_tag):
        return "No books match your filters"
    return f"{count} {'book' if count == 1 else 'books'} found"


def tag_options(state: CollectionState) -> List[Tuple[str, str]]:
    """``(value, label)`` pairs for the tag selector; ``""`` means all tags."""
    return [("", "All tags")] + [(tag, tag) for tag in state.tags]


SORT_OPTIONS: List[Tuple[SortOrder, str]] = [
    (SortOrder.ASC, "Title: A–Z"),
    (SortOrder.DESC, "Title: Z–A"),
]


def is_empty_shelf(state: CollectionState) -> bool:
    return state.status is LoadStatus.LOADED and not state.books


# -- view --------------------------------------------------------------------

class BookCollectionView:
    """Owner of the shelf page state.

    Parameters
    ----------
    api : BooksApi
        Client used for every fetch and mutation.
    debounce : float
        Seconds to wait after the last search keystroke before fetching.
    toast_duration : Optional[float]
        Seconds a toast stays visible. ``None`` keeps toasts until
        ``dismiss_toast()`` is called.
    """

    def __init__(
        self,
        api: BooksApi,
        debounce: float = DEFAULT_DEBOUNCE,
        toast_duration: Optional[float] = DEFAULT_TOAST_DURATION,
    ) -> None:
        self._api = api
        self._debounce = debounce
        self._toast_duration = toast_duration
        self._state = CollectionState()
        self._listeners: List[Listener] = []
        self._generation = 0
        self._debounce_timer: Optional[asyncio.Task] = None
        self._search_fetches: Set[asyncio.Task] = set()
        self._toast_timer: Optional[asyncio.Task] = None

    @property
    def state(self) -> CollectionState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call ``listener`` with every new snapshot. Returns an unsubscribe."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _transition(self, **changes) -> None:
        self._state = replace(self._state, **changes)
        for listener in list(self._listeners):
            listener(self._state)

    # -- loading -------------------------------------------------------------

    async def mount(self, toast_key: Optional[str] = None) -> None:
        """First render: show the redirect toast, then load tags and books."""
        if toast_key:
            preset = TOAST_PRESETS.get(toast_key)
            if preset is not None:
                self.show_toast(preset.message, preset.variant)
        await self.refresh_tags()
        await self.refresh_books()

    async def refresh_books(self) -> None:
        self._generation += 1
        generation = self._generation
        state = self._state
        self._transition(status=LoadStatus.LOADING)
        try:
            books = await self._api.list_books(
                search=state.search, tag=state.selected_tag, sort=state.sort
            )
        except ApiError as exc:
            logger.error("Error fetching books: %s", exc)
            if generation != self._generation:
                return
            self._transition(status=LoadStatus.ERROR, error=exc.message)
            self.show_toast("Unable to load books.", ToastVariant.ERROR)
            return
        if generation != self._generation:
            logger.debug("Dropping superseded book list (request %d, latest %d)", generation, self._generation)
            return
        self._transition(status=LoadStatus.LOADED, books=tuple(books), error=None)

    async def refresh_tags(self) -> None:
        try:
            tags = await self._api.list_tags()
        except ApiError as exc:
            logger.error("Error fetching tags: %s", exc)
            self.show_toast("Unable to load tags.", ToastVariant.ERROR)
            return
        self._transition(tags=tuple(tags))

    # -- filters -------------------------------------------------------------

    def set_search(self, text: str) -> None:
        """Update the search box; the list is refetched once typing pauses.

        Must be called from a running event loop.
        """
        self._transition(search=text)
        self._cancel_debounce()
        task = asyncio.ensure_future(self._debounced_refresh())
        self._debounce_timer = task
        self._search_fetches.add(task)
        task.add_done_callback(self._search_fetches.discard)

    async def _debounced_refresh(self) -> None:
        await asyncio.sleep(self._debounce)
        # Past this point the fetch is never cancelled; newer input only
        # makes its response stale.
        self._debounce_timer = None
        await self.refresh_books()

    async def select_tag(self, tag: str) -> None:
        self._transition(selected_tag=tag)
        self._cancel_debounce()
        await self.refresh_books()

    async def set_sort(self, sort: SortOrder) -> None:
        self._transition(sort=SortOrder(sort))
        self._cancel_debounce()
        await self.refresh_books()

    def _cancel_debounce(self) -> None:
        """Drop a search refetch that is still waiting out the debounce."""
        if self._debounce_timer is not None and not self._debounce_timer.done():
            self._debounce_timer.cancel()
        self._debounce_timer = None

    # -- delete flow ---------------------------------------------------------

    def request_delete(self, book: Book) -> None:
        self._transition(pending_delete=book)

    def cancel_delete(self) -> None:
        self._transition(pending_delete=None)

    async def confirm_delete(self) -> None:
        """Delete the book awaiting confirmation, then reload list and tags.

        The tag index is reloaded too because the deleted book may have
        been the last one carrying some tag.
        """
        book = self._state.pending_delete
        if book is None:
            return
        self._transition(delete_loading=True)
        try:
            await self._api.delete_book(book.id)
        except ApiError as exc:
            logger.error("Error deleting book %s: %s", book.id, exc)
            self.show_toast("Failed to delete book.", ToastVariant.ERROR)
            self._transition(delete_loading=False)
            return
        preset = TOAST_PRESETS["book-deleted"]
        self.show_toast(preset.message, preset.variant)
        self._transition(pending_delete=None)
        try:
            await self.refresh_books()
            await self.refresh_tags()
        finally:
            self._transition(delete_loading=False)

    # -- toasts --------------------------------------------------------------

    def show_toast(self, message: str, variant: ToastVariant) -> None:
        self._transition(toast=Toast(message, variant))
        if self._toast_timer is not None and not self._toast_timer.done():
            self._toast_timer.cancel()
        self._toast_timer = None
        if self._toast_duration is not None:
            self._toast_timer = asyncio.ensure_future(self._expire_toast(self._toast_duration))

    async def _expire_toast(self, delay: float) -> None:
        await asyncio.sleep(delay)
        self._transition(toast=None)

    def dismiss_toast(self) -> None:
        if self._toast_timer is not None and not self._toast_timer.done():
            self._toast_timer.cancel()
        self._toast_timer = None
        self._transition(toast=None)

    # -- lifecycle -----------------------------------------------------------

    async def settle(self) -> None:
        """Wait for debounced search fetches, waiting or in flight, to finish."""
        tasks = list(self._search_fetches)
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)

    async def aclose(self) -> None:
        """Cancel background work. The view must not be used afterwards."""
        tasks = [t for t in (*self._search_fetches, self._toast_timer) if t is not None and not t.done()]
        for task in tasks:
            task.cancel()
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
        self._debounce_timer = None
        self._search_fetches.clear()
        self._toast_timer = None
        self._listeners.clear()
