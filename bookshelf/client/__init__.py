"""
Client-side components of the bookshelf.

``BooksApi`` talks to the REST API, ``BookCollectionView`` drives the
shelf page (search, tag filter, sort, delete) and ``BookForm`` drives the
create and edit pages.
"""

from .api import (  # noqa: F401
    ApiError,
    ApiNotFoundError,
    ApiUnavailableError,
    ApiValidationError,
    BooksApi,
)
from .collection import BookCollectionView, CollectionState, LoadStatus  # noqa: F401
from .form import BookForm, BookFormState  # noqa: F401
