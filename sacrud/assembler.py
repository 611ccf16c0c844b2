# Query assembly: build the QueryPlan of a list or detail request
#
# The stages run in this order:
#   relations -> filters -> ordering -> projection -> pagination
# skip/take are applied to the filtered rows
#
from typing import Any, Iterable, Mapping, Optional, Type

from sqlalchemy.orm import load_only, selectinload

import sacrud
from .config import get_config, get_int_config
from .errors import BadRequestError, InvalidQueryKey
from .filters import apply_predicate
from .query_key import KEY_DELIMITER, is_special_key, parse_query_key
from .query_plan import QueryPlan
from .relations import primary_key_name, resolve_field

ASC = "ASC"
DESC = "DESC"


def _single(value: Any) -> Any:
    """
    :return: the last value of a query parameter that was passed more than once
    """
    if isinstance(value, (list, tuple)):
        return value[-1] if value else None
    return value


def _csv(value: Any) -> list:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        value = ",".join(value)
    return [item.strip() for item in str(value).split(",") if item.strip()]


def apply_relations(plan: QueryPlan, relations: Iterable[str]) -> QueryPlan:
    """
    Eager load the configured relations, dotted paths load nested relationships (f.i. "books.tags")
    """
    for relation_path in relations:
        current_cls = plan.model
        option = None
        for rel_name in relation_path.split("."):
            field = resolve_field(current_cls, rel_name)
            if field is None or not field.is_relation:
                sacrud.log.warning(f"Invalid relationship : {current_cls.__name__}.{rel_name}")
                break
            option = option.selectinload(field.attribute) if option is not None else selectinload(field.attribute)
            current_cls = field.target
        if option is not None:
            plan.relations.append(relation_path)
            plan.add_options(option)
    return plan


def apply_filters(plan: QueryPlan, query: Mapping[str, Any], extra_keys: Iterable[str] = ()) -> QueryPlan:
    """
    Add a predicate for every query string key that isn't reserved
    """
    delimiter = get_config("KEY_DELIMITER") or KEY_DELIMITER
    extra_keys = tuple(extra_keys)
    for raw_key, value in query.items():
        if is_special_key(raw_key, extra_keys):
            continue
        key = parse_query_key(raw_key, value, delimiter)
        apply_predicate(plan, key, resolve_field(plan.model, key))
    return plan


def apply_order(plan: QueryPlan, order_by: Any, default_order: Optional[Mapping[str, str]] = None) -> QueryPlan:
    """
    order_by=-name,id : a leading "-" sorts descending
    Without order_by, the statically configured order is used
    """
    if order_by is None or order_by == "":
        order_items = [(name, str(direction).upper()) for name, direction in (default_order or {}).items()]
    else:
        order_items = [(item[1:], DESC) if item.startswith("-") else (item, ASC) for item in _csv(order_by)]

    for name, direction in order_items:
        field = resolve_field(plan.model, name)
        if field is None or field.is_relation:
            if get_config("STRICT_ORDER_BY"):
                raise InvalidQueryKey("order_by", f"{name} is not a column of {plan.alias}")
            sacrud.log.debug(f"{plan.alias} has no column {name}, ordering dropped")
            continue
        plan.add_order(field.attribute.desc() if direction == DESC else field.attribute.asc())
    return plan


def apply_select(plan: QueryPlan, select_value: Any, default_select: Iterable[str] = ()) -> QueryPlan:
    """
    Restrict the loaded columns (the primary key is always loaded)
    """
    names = _csv(select_value) or list(default_select)
    if not names:
        return plan
    attributes = []
    for name in names:
        field = resolve_field(plan.model, name)
        if field is None or field.is_relation:
            raise InvalidQueryKey("select", f"{name} is not a column of {plan.alias}")
        attributes.append(field.attribute)
    plan.projection = names
    return plan.add_options(load_only(*attributes))


def apply_pagination(plan: QueryPlan, query: Mapping[str, Any], take: Optional[int] = None) -> QueryPlan:
    """
    offset defaults to 0, limit to the resource page size
    """
    offset = _single(query.get("offset"))
    limit = _single(query.get("limit"))
    try:
        offset = int(offset) if offset not in (None, "") else 0
        limit = int(limit) if limit not in (None, "") else int(take or get_int_config("DEFAULT_PAGE_LIMIT"))
    except ValueError:
        raise BadRequestError("Pagination Value Error")

    max_limit = get_int_config("MAX_PAGE_LIMIT")
    max_offset = get_int_config("MAX_PAGE_OFFSET")
    if limit <= 0:
        limit = 1
    if limit > max_limit:
        limit = max_limit
    if offset < 0:
        offset = 0
    if offset > max_offset:
        offset = max_offset
    return plan.set_skip(offset).set_take(limit)


def build_query_plan(model: Type[Any], options: Any, query: Mapping[str, Any]) -> QueryPlan:
    """
    Assemble the plan of a list request
    :param model: sqla mapped class
    :param options: ResourceOptions
    :param query: request query string dict
    :return: QueryPlan
    """
    plan = QueryPlan(model)
    apply_relations(plan, options.relations)
    apply_filters(plan, query, options.extra_query_keys)
    apply_order(plan, _single(query.get("order_by")), options.order)
    apply_select(plan, query.get("select"), options.select)
    apply_pagination(plan, query, options.take)
    return plan


def build_detail_plan(model: Type[Any], options: Any, query: Mapping[str, Any], item_id: int) -> QueryPlan:
    """
    Assemble the plan of a detail request: eager relations and projection, constrained by id
    """
    plan = QueryPlan(model)
    apply_relations(plan, options.relations)
    apply_select(plan, query.get("select"), options.select)
    return plan.where(getattr(model, primary_key_name(model)) == item_id)
