import os

# Point the module-level app at a throwaway database before it is imported.
os.environ.setdefault("DATABASE_URL", "sqlite://")

from typing import Iterator

import httpx
import pytest
import pytest_asyncio
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy.engine import Engine
from sqlmodel import Session

from bookshelf.catalog.schemas import BookPayload
from bookshelf.catalog.store import BookStore
from bookshelf.client.api import BooksApi
from bookshelf.database import build_engine, get_session, init_db
from bookshelf.main import create_app


@pytest.fixture
def engine() -> Iterator[Engine]:
    """A fresh in-memory database per test."""
    engine = build_engine("sqlite://")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def session(engine: Engine) -> Iterator[Session]:
    with Session(engine, expire_on_commit=False) as session:
        yield session


@pytest.fixture
def store(session: Session) -> BookStore:
    return BookStore(session)


@pytest.fixture
def add_book(store: BookStore):
    """Create and commit a book through the store."""

    def _add(title: str, author: str = "Anon", tags=None, cover_image=None):
        payload = BookPayload(title=title, author=author, tags=tags or [], cover_image=cover_image)
        book = store.create(payload.to_draft())
        store.commit()
        return book

    return _add


@pytest.fixture
def app(engine: Engine) -> FastAPI:
    app = create_app()

    def _session_override() -> Iterator[Session]:
        with Session(engine, expire_on_commit=False) as session:
            yield session

    app.dependency_overrides[get_session] = _session_override
    return app


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app)


@pytest_asyncio.fixture
async def http(app: FastAPI):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as http:
        yield http


@pytest.fixture
def api(http: httpx.AsyncClient) -> BooksApi:
    return BooksApi(http)
