"""
Filtering: translate parsed query keys into predicates on a QueryPlan

    ?title=Dune                  -> Book.title = :title
    ?pages__gte=100              -> Book.pages >= :pages
    ?author__name__in=ann,bob    -> JOIN authors AS Book_author ... Book_author.name IN (:n1, :n2)
    ?tags__count_gt=1            -> (SELECT count(..) FROM .. correlated to Book) > :count

Values are always bound parameters, they never end up in the statement text
"""
import operator
from typing import Any, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import aliased

from .attr_parse import parse_int, parse_query_value
from .errors import InvalidQueryKey
from .query_key import Modifier, QueryKey
from .query_plan import QueryPlan
from .relations import FieldInfo, primary_key_name, resolve_field

OPERATORS = {
    None: operator.eq,
    Modifier.GT: operator.gt,
    Modifier.GTE: operator.ge,
    Modifier.LT: operator.lt,
    Modifier.LTE: operator.le,
    Modifier.NOT: operator.ne,
}

COUNT_OPERATORS = {
    Modifier.COUNT_EQ: operator.eq,
    Modifier.COUNT_GT: operator.gt,
    Modifier.COUNT_GTE: operator.ge,
    Modifier.COUNT_LT: operator.lt,
    Modifier.COUNT_LTE: operator.le,
}


def _coerce(key: QueryKey, column, value: Any) -> Any:
    try:
        return parse_query_value(column, value)
    except (ValueError, TypeError, ArithmeticError):
        raise InvalidQueryKey(key.raw, f"invalid value {value!r}")


def build_clause(key: QueryKey, attr, column) -> Any:
    """
    Create the comparison for `key` on the (aliased) attribute

    :param key: parsed query key
    :param attr: sqla attribute the filter applies to
    :param column: mapped column of the attribute, used for value parsing
    :return: sqla clause
    """
    modification = key.modification
    value = key.value
    if isinstance(value, (list, tuple)):
        # an array value implies "is one of"
        if modification is None:
            modification = Modifier.IN
        elif not modification.is_multi:
            raise InvalidQueryKey(key.raw, f"'{modification.value}' takes a single value")

    if modification is not None and modification.is_multi:
        if not isinstance(value, (list, tuple)):
            raise InvalidQueryKey(key.raw, f"'{modification.value}' requires an array value")
        values = [_coerce(key, column, item) for item in value]
        if modification is Modifier.IN:
            return attr.in_(values)
        return attr.not_in(values)

    value = _coerce(key, column, value)
    if value is None:
        if modification is None:
            return attr.is_(None)
        if modification is Modifier.NOT:
            return attr.is_not(None)
        raise InvalidQueryKey(key.raw, f"'{modification.value}' can't compare with null")
    return OPERATORS[modification](attr, value)


def _count_clause(plan: QueryPlan, key: QueryKey, field: FieldInfo) -> Any:
    """
    Compare the number of related items with a correlated count subquery
    """
    if not field.is_to_many or key.path:
        raise InvalidQueryKey(key.raw, f"'{key.modification.value}' applies to to-many relationships only")
    try:
        value = parse_int(key.value)
    except (ValueError, TypeError):
        raise InvalidQueryKey(key.raw, f"invalid count {key.value!r}")

    pk_name = primary_key_name(plan.model)
    inner = aliased(plan.model)
    target = aliased(field.target)
    counted = (
        select(func.count(getattr(target, primary_key_name(field.target))))
        .select_from(inner)
        .join(getattr(inner, field.name).of_type(target))
        .where(getattr(inner, pk_name) == getattr(plan.model, pk_name))
        .scalar_subquery()
    )
    return COUNT_OPERATORS[key.modification](counted, value)


def apply_predicate(plan: QueryPlan, key: QueryKey, field: Optional[FieldInfo]) -> QueryPlan:
    """
    Add the predicate for `key` to the plan, joining the related class if the key targets a relationship

    :param plan: QueryPlan
    :param key: parsed query key
    :param field: the resolved field of key.base, None if it isn't a field of the model
    :return: QueryPlan
    """
    if field is None:
        raise InvalidQueryKey(key.raw, "unknown field")

    if key.modification is not None and key.modification.is_count:
        return plan.where(_count_clause(plan, key, field))

    if not field.is_relation:
        if key.path:
            raise InvalidQueryKey(key.raw, f"{field.name} is not a relationship")
        return plan.where(build_clause(key, field.attribute, field.column))

    if len(key.path) > 1:
        raise InvalidQueryKey(key.raw, "nested relationship filters are not supported")
    # without a remote field we compare the related primary key, f.i. ?author=1
    remote_name = key.remote_field or primary_key_name(field.target)
    remote_field = resolve_field(field.target, remote_name)
    if remote_field is None or remote_field.is_relation:
        raise InvalidQueryKey(key.raw, f"{remote_name} is not a column of {field.target.__name__}")

    alias = plan.add_or_get_join(field)
    return plan.where(build_clause(key, getattr(alias, remote_name), remote_field.column))
