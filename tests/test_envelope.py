from urllib.parse import parse_qs, urlparse

from sacrud.envelope import ListResponse, next_page_link
from sacrud.query_plan import QueryPlan

from models import Book


def _plan(skip: int, take: int) -> QueryPlan:
    return QueryPlan(Book).set_skip(skip).set_take(take)


def test_first_page_links_to_the_next() -> None:
    response = ListResponse([{}] * 10, _plan(0, 10), 25, 10, {"limit": "10", "title__not": "x"}, "/api/books")
    meta = response.to_dict()["meta"]
    assert meta["count"] == 10
    assert meta["total"] == 25
    assert (meta["limit"], meta["offset"]) == (10, 0)
    url = urlparse(meta["next"])
    assert url.path == "/api/books"
    assert parse_qs(url.query) == {"limit": ["10"], "offset": ["10"], "title__not": ["x"]}


def test_last_page_has_no_next() -> None:
    response = ListResponse([{}] * 5, _plan(20, 10), 25, 5, {"offset": "20", "limit": "10"}, "/api/books")
    meta = response.to_dict()["meta"]
    assert "next" not in meta
    assert meta["offset"] == 20


def test_exact_fit_has_no_next() -> None:
    assert next_page_link("/books", {}, 10, 10, 20) is None
    assert next_page_link("/books", {}, 0, 0, 20) is None


def test_repeated_query_keys_are_kept() -> None:
    link = next_page_link("/books", {"title": ["a", "b"], "offset": "0"}, 0, 1, 3)
    assert parse_qs(urlparse(link).query) == {"offset": ["1"], "title": ["a", "b"]}


def test_objects_are_passed_through() -> None:
    objects = [{"id": 1}]
    response = ListResponse(objects, _plan(0, 10), 1, 1, {}, "/books")
    assert response.to_dict()["objects"] is objects
    assert response.meta["count"] == 1
