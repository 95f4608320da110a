"""Search, tag filter, title sort and tag index, run against SQLite."""

from datetime import datetime, timedelta, timezone

from bookshelf.catalog.query import BookQuery
from bookshelf.catalog.schemas import SortOrder
from bookshelf.catalog.tables import BookRow


def _titles(books):
    return [b.title for b in books]


class TestBookQueryParams:
    def test_blank_values_mean_no_filter(self):
        query = BookQuery.from_params(search="  ", tag="", sort=None)
        assert query.search == ""
        assert query.tag == ""
        assert query.sort is SortOrder.ASC

    def test_only_desc_sorts_descending(self):
        assert BookQuery.from_params(sort="desc").sort is SortOrder.DESC
        assert BookQuery.from_params(sort="DESC").sort is SortOrder.DESC
        assert BookQuery.from_params(sort="sideways").sort is SortOrder.ASC


class TestSearch:
    def test_substring_in_any_case_matches(self, store, add_book):
        add_book("The Left Hand of Darkness")
        add_book("Dune")

        for term in ("left", "LEFT HAND", "hand of d", "darkNESS"):
            result = store.find(BookQuery.from_params(search=term))
            assert _titles(result) == ["The Left Hand of Darkness"], term

    def test_non_ascii_titles_match_in_any_case(self, store, add_book):
        add_book("Émile ou de l'éducation")
        add_book("ÉTUDES")
        add_book("Emma")

        assert _titles(store.find(BookQuery.from_params(search="Émile"))) == ["Émile ou de l'éducation"]
        assert _titles(store.find(BookQuery.from_params(search="émile"))) == ["Émile ou de l'éducation"]
        assert _titles(store.find(BookQuery.from_params(search="études"))) == ["ÉTUDES"]
        assert _titles(store.find(BookQuery.from_params(search="ÉDUCATION"))) == ["Émile ou de l'éducation"]

    def test_wildcards_are_matched_literally(self, store, add_book):
        add_book("100% Pure")
        add_book("1000 Places")
        add_book("snake_case")
        add_book("snakescase")

        assert _titles(store.find(BookQuery.from_params(search="100%"))) == ["100% Pure"]
        assert _titles(store.find(BookQuery.from_params(search="e_c"))) == ["snake_case"]

    def test_search_only_looks_at_title(self, store, add_book):
        add_book("Dune", author="Frank Herbert", tags=["herbert"])
        assert store.find(BookQuery.from_params(search="herbert")) == []


class TestTagFilter:
    def test_returns_exactly_the_tagged_books(self, store, add_book):
        add_book("A", tags=["sf", "classic"])
        add_book("B", tags=["fantasy"])
        add_book("C", tags=["classic"])
        add_book("D")

        result = store.find(BookQuery.from_params(tag="classic"))
        assert _titles(result) == ["A", "C"]
        assert all("classic" in b.tags for b in result)

    def test_tag_match_is_exact(self, store, add_book):
        add_book("A", tags=["Classic"])
        add_book("B", tags=["classics"])
        assert store.find(BookQuery.from_params(tag="classic")) == []

    def test_duplicated_tag_does_not_duplicate_the_book(self, store, add_book):
        add_book("A", tags=["x", "x"])
        assert _titles(store.find(BookQuery.from_params(tag="x"))) == ["A"]

    def test_search_and_tag_combine(self, store, add_book):
        add_book("Dune", tags=["sf"])
        add_book("Dune Messiah", tags=["sf", "sequel"])
        add_book("Dune Road", tags=["travel"])

        result = store.find(BookQuery.from_params(search="dune", tag="sf"))
        assert _titles(result) == ["Dune", "Dune Messiah"]


class TestSort:
    def test_ascending_and_descending(self, store, add_book):
        for title in ("banana", "Apple", "cherry", "apple"):
            add_book(title)

        asc = _titles(store.find(BookQuery.from_params(sort="asc")))
        desc = _titles(store.find(BookQuery.from_params(sort="desc")))

        assert asc == sorted(asc)
        assert asc == ["Apple", "apple", "banana", "cherry"]
        assert desc == ["cherry", "banana", "apple", "Apple"]

    def test_equal_titles_keep_creation_order(self, store, session):
        base = datetime(2024, 1, 1, tzinfo=timezone.utc)
        ids = []
        for offset, book_id in enumerate(["z-first", "a-second", "m-third"]):
            session.add(BookRow(id=book_id, title="Same", author="x", created_at=base + timedelta(minutes=offset)))
            ids.append(book_id)
        session.commit()

        for sort in ("asc", "desc"):
            result = store.find(BookQuery.from_params(sort=sort))
            assert [b.id for b in result] == ids


class TestTagIndex:
    def test_distinct_and_sorted(self, store, add_book):
        add_book("A", tags=["sf", "classic", "sf"])
        add_book("B", tags=["classic", "award"])

        assert store.distinct_tags() == ["award", "classic", "sf"]

    def test_empty_catalogue(self, store):
        assert store.distinct_tags() == []
