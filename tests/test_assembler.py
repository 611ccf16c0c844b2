import pytest
from sqlalchemy import inspect as sqla_inspect
from sqlalchemy.dialects import postgresql

import sacrud
from sacrud.assembler import apply_pagination, build_detail_plan, build_query_plan
from sacrud.errors import BadRequestError, InvalidQueryKey
from sacrud.options import ResourceOptions
from sacrud.query_plan import QueryPlan

from models import Author, Book


def _titles(session, plan: QueryPlan) -> list:
    return [book.title for book in session.scalars(plan.statement())]


def test_reserved_keys_are_not_filters(session) -> None:
    plan = build_query_plan(Book, ResourceOptions(), {"limit": "2", "offset": "1", "order_by": "title", "select": "title"})
    assert plan.criteria == []
    assert (plan.skip, plan.take) == (1, 2)
    assert _titles(session, plan) == ["Emma", "Neuromancer"]


def test_extra_query_keys_are_ignored(session) -> None:
    plan = build_query_plan(Book, ResourceOptions(extra_query_keys=["format"]), {"format": "csv"})
    assert plan.criteria == []


def test_order_by(session) -> None:
    options = ResourceOptions()
    assert _titles(session, build_query_plan(Book, options, {"order_by": "-pages"})) == ["Dune", "Emma", "Neuromancer", "Orphan"]
    assert _titles(session, build_query_plan(Book, options, {"order_by": "published,-title"})) == ["Orphan", "Neuromancer", "Emma", "Dune"]


def test_static_order_is_the_default(session) -> None:
    options = ResourceOptions(order={"title": "DESC"})
    assert _titles(session, build_query_plan(Book, options, {})) == ["Orphan", "Neuromancer", "Emma", "Dune"]
    assert _titles(session, build_query_plan(Book, options, {"order_by": "title"}))[0] == "Dune"


def test_unknown_order_field_is_dropped(session) -> None:
    plan = build_query_plan(Book, ResourceOptions(), {"order_by": "nope,-title"})
    assert len(plan.order_by) == 1
    assert _titles(session, plan)[0] == "Orphan"


def test_strict_order_by(monkeypatch) -> None:
    monkeypatch.setattr(sacrud.SACRUD, "STRICT_ORDER_BY", True)
    with pytest.raises(InvalidQueryKey):
        build_query_plan(Book, ResourceOptions(), {"order_by": "nope"})


def test_pagination_defaults(monkeypatch) -> None:
    monkeypatch.setattr(sacrud.SACRUD, "DEFAULT_PAGE_LIMIT", 3)
    plan = apply_pagination(QueryPlan(Book), {})
    assert (plan.skip, plan.take) == (0, 3)
    plan = apply_pagination(QueryPlan(Book), {}, take=2)
    assert plan.take == 2


def test_pagination_clamping(monkeypatch) -> None:
    monkeypatch.setattr(sacrud.SACRUD, "MAX_PAGE_LIMIT", 50)
    plan = apply_pagination(QueryPlan(Book), {"limit": "500", "offset": "-3"})
    assert (plan.skip, plan.take) == (0, 50)
    plan = apply_pagination(QueryPlan(Book), {"limit": "0"})
    assert plan.take == 1


def test_repeated_pagination_keys_use_the_last_value() -> None:
    plan = apply_pagination(QueryPlan(Book), {"limit": ["5", "7"]})
    assert plan.take == 7


@pytest.mark.parametrize("query", [{"limit": "ten"}, {"offset": "1.5"}])
def test_invalid_pagination(query) -> None:
    with pytest.raises(BadRequestError) as exc_info:
        apply_pagination(QueryPlan(Book), query)
    assert "Pagination Value Error" in exc_info.value.message


def test_relations_are_eager_loaded(session) -> None:
    plan = build_query_plan(Author, ResourceOptions(relations=["books.tags", "nope"]), {"order_by": "name"})
    assert plan.relations == ["books.tags"]
    alice = session.scalars(plan.statement()).first()
    state = sqla_inspect(alice)
    assert "books" not in state.unloaded
    assert "tags" not in sqla_inspect(alice.books[0]).unloaded
    assert "profile" in state.unloaded


def test_select_restricts_the_loaded_columns(session) -> None:
    plan = build_query_plan(Book, ResourceOptions(), {"select": "title,pages"})
    assert plan.projection == ["title", "pages"]
    book = session.scalars(plan.statement()).first()
    unloaded = sqla_inspect(book).unloaded
    assert "title" not in unloaded
    assert "published" in unloaded


def test_select_unknown_column() -> None:
    with pytest.raises(InvalidQueryKey):
        build_query_plan(Book, ResourceOptions(), {"select": "title,author"})


def test_detail_plan_ignores_filters(session) -> None:
    plan = build_detail_plan(Book, ResourceOptions(), {"title": "Emma", "limit": "0"}, 1)
    book = session.scalars(plan.statement(paginate=False)).first()
    assert book.title == "Dune"


def test_to_many_filter_with_projection_and_order(session) -> None:
    query = {"select": "title", "tags__label": "scifi", "order_by": "-pages"}
    plan = build_query_plan(Book, ResourceOptions(), query)
    sql = str(plan.statement().compile(dialect=postgresql.dialect()))
    assert "DISTINCT" not in sql
    assert _titles(session, plan) == ["Dune", "Neuromancer"]
    assert session.execute(plan.count_statement()).scalar_one() == 2
