"""
Async client for the ``/api/books`` endpoints.

``BooksApi`` wraps an ``httpx.AsyncClient`` and turns responses into
``Book`` models. Non-2xx responses become ``ApiError`` subclasses whose
message is the server's ``{"error": ...}`` text, or an operation-specific
fallback when the body carries none. Transport failures (connection
refused, timeouts) and 2xx bodies that do not parse as the expected
shape become ``ApiUnavailableError`` as well. Nothing is retried:
the caller decides whether to try again.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import httpx
from pydantic import TypeAdapter, ValidationError

from ..catalog.schemas import Book, SortOrder


logger = logging.getLogger(__name__)

_BOOK = TypeAdapter(Book)
_BOOK_LIST = TypeAdapter(List[Book])
_TAG_LIST = TypeAdapter(List[str])


class ApiError(Exception):
    """A request to the books API failed."""

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class ApiValidationError(ApiError):
    """The server rejected the submitted book (400)."""


class ApiNotFoundError(ApiError):
    """No book with the requested id (404)."""


class ApiUnavailableError(ApiError):
    """Network failure or server-side error (5xx)."""


def _error_message(response: httpx.Response, fallback: str) -> str:
    try:
        body = response.json()
    except ValueError:
        return fallback
    if isinstance(body, dict) and isinstance(body.get("error"), str) and body["error"]:
        return body["error"]
    return fallback


def _raise_for_response(response: httpx.Response, fallback: str) -> None:
    if response.is_success:
        return
    message = _error_message(response, fallback)
    code = response.status_code
    if code == 400:
        raise ApiValidationError(message, code)
    if code == 404:
        raise ApiNotFoundError(message, code)
    if code >= 500:
        raise ApiUnavailableError(message, code)
    raise ApiError(message, code)


def book_body(
    title: str,
    author: str,
    tags: List[str],
    cover_image: Optional[str],
) -> Dict[str, Any]:
    """JSON body for create/update; an empty cover is sent as ``null``."""
    return {
        "title": title,
        "author": author,
        "tags": list(tags),
        "coverImage": cover_image or None,
    }


class BooksApi:
    """Typed access to the books endpoints.

    Parameters
    ----------
    client : httpx.AsyncClient
        Client whose ``base_url`` points at the service root. The caller
        owns it; ``BooksApi`` never closes it.
    prefix : str
        Path of the books collection.
    """

    def __init__(self, client: httpx.AsyncClient, prefix: str = "/api/books") -> None:
        self._client = client
        self._prefix = prefix.rstrip("/")

    async def _request(
        self,
        method: str,
        path: str,
        fallback: str,
        adapter: Optional[TypeAdapter] = None,
        **kwargs: Any,
    ) -> Any:
        url = f"{self._prefix}{path}"
        try:
            response = await self._client.request(method, url, **kwargs)
        except httpx.HTTPError as exc:
            logger.error("%s %s failed: %s", method, url, exc)
            raise ApiUnavailableError(fallback) from exc
        _raise_for_response(response, fallback)
        if adapter is None:
            return None
        try:
            return adapter.validate_json(response.content)
        except ValidationError as exc:
            logger.error("%s %s returned an unreadable body: %s", method, url, exc)
            raise ApiUnavailableError(fallback, response.status_code) from exc

    async def list_books(
        self,
        search: str = "",
        tag: str = "",
        sort: SortOrder = SortOrder.ASC,
    ) -> List[Book]:
        params: Dict[str, str] = {}
        if search:
            params["search"] = search
        if tag:
            params["tag"] = tag
        params["sort"] = SortOrder(sort).value
        return await self._request("GET", "", "Failed to fetch books", _BOOK_LIST, params=params)

    async def list_tags(self) -> List[str]:
        return await self._request("GET", "/tags", "Failed to fetch tags", _TAG_LIST)

    async def get_book(self, book_id: str) -> Book:
        return await self._request("GET", f"/{book_id}", "Failed to load book", _BOOK)

    async def create_book(self, body: Dict[str, Any]) -> Book:
        return await self._request("POST", "", "Failed to create book", _BOOK, json=body)

    async def update_book(self, book_id: str, body: Dict[str, Any]) -> Book:
        return await self._request("PUT", f"/{book_id}", "Failed to update book", _BOOK, json=body)

    async def delete_book(self, book_id: str) -> None:
        await self._request("DELETE", f"/{book_id}", "Failed to delete book")
