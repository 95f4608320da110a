"""
Catalog package for the bookshelf API.

This package contains the persistence models, the store, the query
builder and the route definitions behind ``/api/books``: create, read,
update and delete book records, list them with a title search, a tag
filter and a title sort, and list the distinct tags in use so that a
front-end can populate its filter selector.
"""

from .router import router as catalog_router  # noqa: F401
