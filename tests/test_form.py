import base64

import pytest

from bookshelf.client.api import ApiUnavailableError
from bookshelf.client.form import (
    REQUIRED_FIELDS_MESSAGE,
    BookForm,
    BookFormState,
    encode_data_uri,
    format_tags,
    parse_tags,
    read_cover_file,
    validate,
)


class TestHelpers:
    def test_parse_tags(self):
        assert parse_tags("a, b, b") == ["a", "b", "b"]
        assert parse_tags(" sf ,, classic , ") == ["sf", "classic"]
        assert parse_tags("") == []

    def test_format_tags(self):
        assert format_tags(["a", "b"]) == "a, b"

    def test_encode_data_uri(self):
        uri = encode_data_uri(b"\x89PNG", "image/png")
        assert uri == "data:image/png;base64," + base64.b64encode(b"\x89PNG").decode("ascii")

    def test_encode_data_uri_without_type(self):
        assert encode_data_uri(b"x").startswith("data:application/octet-stream;base64,")

    def test_read_cover_file_guesses_type(self, tmp_path):
        cover = tmp_path / "cover.jpg"
        cover.write_bytes(b"jpeg-bytes")
        assert read_cover_file(cover) == encode_data_uri(b"jpeg-bytes", "image/jpeg")

    def test_validate(self):
        assert validate(BookFormState(title="T", author="A")) is None
        assert validate(BookFormState(title="  ", author="A")) == REQUIRED_FIELDS_MESSAGE
        assert validate(BookFormState(title="T", author="")) == REQUIRED_FIELDS_MESSAGE


def test_update_rejects_unknown_fields():
    form = BookForm(api=None)
    with pytest.raises(TypeError):
        form.update(isbn="123")


@pytest.mark.asyncio
async def test_create_submits_trimmed_values(api):
    form = BookForm(api)
    form.update(title="  Dune  ", author=" Frank Herbert ", tags="a, b, b")
    form.attach_cover(b"img", "image/png")

    redirect = await form.submit()

    assert redirect == "/?toast=book-created"
    assert form.state.error is None
    assert form.state.submitting is False
    [book] = await api.list_books()
    assert book.title == "Dune"
    assert book.author == "Frank Herbert"
    assert book.tags == ["a", "b", "b"]
    assert book.cover_image == encode_data_uri(b"img", "image/png")
    assert await api.list_tags() == ["a", "b"]


@pytest.mark.asyncio
async def test_invalid_form_is_not_sent(api):
    form = BookForm(api)
    form.update(title="Dune", author="   ", tags="sf")

    assert await form.submit() is None
    assert form.state.error == REQUIRED_FIELDS_MESSAGE
    assert form.state.title == "Dune"
    assert form.state.tags == "sf"
    assert await api.list_books() == []


@pytest.mark.asyncio
async def test_failed_submit_keeps_fields_and_shows_server_message():
    class RejectingApi:
        async def create_book(self, body):
            raise ApiUnavailableError("Failed to create book", 500)

    form = BookForm(RejectingApi())
    form.update(title="Dune", author="Frank Herbert", tags="sf", cover_image="https://x/c.jpg")

    assert await form.submit() is None
    assert form.state.error == "Failed to create book"
    assert form.state.submitting is False
    assert (form.state.title, form.state.author, form.state.tags, form.state.cover_image) == (
        "Dune",
        "Frank Herbert",
        "sf",
        "https://x/c.jpg",
    )


@pytest.mark.asyncio
async def test_edit_loads_then_updates(api):
    created = await api.create_book({"title": "Dune", "author": "FH", "tags": ["sf", "classic"], "coverImage": None})

    form = BookForm(api, book_id=created.id)
    assert form.state.loading is True
    assert await form.load() is None
    assert form.state.loading is False
    assert (form.state.title, form.state.tags, form.state.cover_image) == ("Dune", "sf, classic", "")

    form.update(title="Dune Messiah", tags="sf")
    assert await form.submit() == "/?toast=book-updated"

    book = await api.get_book(created.id)
    assert book.title == "Dune Messiah"
    assert book.tags == ["sf"]


@pytest.mark.asyncio
async def test_edit_unknown_book_redirects_home(api):
    form = BookForm(api, book_id="missing")

    assert await form.load() == "/"
    assert form.state.error == "Book not found"


@pytest.mark.asyncio
async def test_edit_of_deleted_book_reports_server_error(api):
    created = await api.create_book({"title": "Dune", "author": "FH", "tags": [], "coverImage": None})
    form = BookForm(api, book_id=created.id)
    await form.load()
    await api.delete_book(created.id)

    assert await form.submit() is None
    assert form.state.error == "Book not found"
    assert form.state.title == "Dune"
