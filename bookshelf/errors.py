# bookshelf/errors.py
"""
Error types raised by the catalogue and the handlers that render them.

Every failure leaves the API as a non-2xx response whose body is
``{"error": "<message>"}``. This applies to our own exceptions as well as
to framework errors (unknown routes, malformed request bodies) so that
clients only ever have to look at one key.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException


logger = logging.getLogger(__name__)


class BookshelfError(Exception):
    """Base class for errors that map onto an HTTP status."""

    status_code = 500
    default_message = "Internal server error"

    def __init__(self, message: str = "") -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class BookValidationError(BookshelfError):
    status_code = 400
    default_message = "Title and author are required"


class BookNotFoundError(BookshelfError):
    status_code = 404
    default_message = "Book not found"


class StoreUnavailableError(BookshelfError):
    """The relational store could not complete the operation."""

    status_code = 500
    default_message = "Failed to fetch books"


def error_response(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"error": message})


async def _bookshelf_error_handler(request: Request, exc: BookshelfError) -> JSONResponse:
    return error_response(exc.status_code, exc.message)


async def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    message = exc.detail if isinstance(exc.detail, str) else "Request failed"
    return error_response(exc.status_code, message)


async def _request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Only the first problem is reported; the front-end shows a single message.
    errors = exc.errors()
    if errors:
        first = errors[0]
        location = ".".join(str(part) for part in first.get("loc", ()) if part != "body")
        message = f"Invalid request: {location} {first.get('msg', '')}".strip()
    else:
        message = "Invalid request"
    return error_response(400, message)


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error on %s %s", request.method, request.url.path)
    return error_response(500, BookshelfError.default_message)


def register_exception_handlers(app: FastAPI) -> None:
    app.add_exception_handler(BookshelfError, _bookshelf_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _request_validation_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
