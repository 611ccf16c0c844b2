"""
Filter keys in the request query string

    field[__relation_field][__modifier]=value

f.i. `?author__name__in=alice,bob&pages__gte=100&books__count_gt=2`
"""
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Iterable, List, Optional

KEY_DELIMITER = "__"

# reserved query string keys, these are never treated as filters
SPECIAL_QUERY_KEYS = ("limit", "offset", "order_by", "select")


class Modifier(str, Enum):
    """
    Filter key suffix selecting the comparison, equality is the unmarked case
    """

    GT = "gt"
    GTE = "gte"
    LT = "lt"
    LTE = "lte"
    IN = "in"
    NOT_IN = "not_in"
    NOT = "not"
    # compare the number of related items of a to-many relationship
    COUNT_EQ = "count_eq"
    COUNT_GT = "count_gt"
    COUNT_GTE = "count_gte"
    COUNT_LT = "count_lt"
    COUNT_LTE = "count_lte"

    @property
    def is_multi(self) -> bool:
        return self in (Modifier.IN, Modifier.NOT_IN)

    @property
    def is_count(self) -> bool:
        return self.value.startswith("count_")


MODIFIERS = frozenset(modifier.value for modifier in Modifier)


@dataclass
class QueryKey:
    """
    Parsed filter key, created for every filter in the query string of a request
    """

    base: str
    path: List[str] = field(default_factory=list)
    modification: Optional[Modifier] = None
    value: Any = None
    raw: str = ""

    @property
    def remote_field(self) -> Optional[str]:
        """
        :return: the name of the field on the joined relation
        """
        return self.path[0] if self.path else None


def parse_query_key(raw_key: str, value: Any, delimiter: str = KEY_DELIMITER) -> QueryKey:
    """
    Split the key on the delimiter: the first segment is the field ("base"),
    a trailing modifier is extracted and the middle segments form the path.
    A trailing segment that isn't a modifier is kept in the path.

    Multi-value filters (`in`, `not_in`) accept a csv string

    :param raw_key: query string key
    :param value: query string value
    :param delimiter: key delimiter
    :return: QueryKey
    """
    parts = raw_key.split(delimiter)
    base, path = parts[0], parts[1:]
    modification = None
    if path and path[-1] in MODIFIERS:
        modification = Modifier(path.pop())
    if modification is not None and modification.is_multi:
        if isinstance(value, str):
            value = value.split(",")
        elif isinstance(value, (list, tuple)):
            # repeated keys: every occurrence may hold a csv string
            value = [item for element in value for item in (element.split(",") if isinstance(element, str) else [element])]
    return QueryKey(base=base, path=path, modification=modification, value=value, raw=raw_key)


def is_special_key(key: str, extra_keys: Iterable[str] = ()) -> bool:
    """
    :param key: query string key
    :param extra_keys: resource-declared reserved keys
    :return: True if the key isn't a filter
    """
    return key in SPECIAL_QUERY_KEYS or key in extra_keys
