# -*- coding: utf-8 -*-
#
# Resource configuration and hook signatures
#
# Hooks may be plain functions or coroutine functions:
# - pre hooks run before the query is executed or the item is persisted
# - after hooks run after execution/persistence
# A hook returning None leaves the plan, rows or item unchanged
#
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Sequence, Union

from .context import RequestContext
from .query_plan import QueryPlan
from .storage import DeleteResult
from .validation import validate_instance

DEFAULT_HTTP_METHODS = ("GET", "POST", "PATCH", "DELETE")

PreGetHook = Callable[[RequestContext, QueryPlan], Union[Optional[QueryPlan], Awaitable[Optional[QueryPlan]]]]
AfterGetHook = Callable[[RequestContext, Any], Union[Any, Awaitable[Any]]]
AfterListHook = Callable[[RequestContext, List[Any]], Union[Optional[List[Any]], Awaitable[Optional[List[Any]]]]]
ItemHook = Callable[[RequestContext, Any], Union[Any, Awaitable[Any]]]
AfterDeleteHook = Callable[[RequestContext, DeleteResult], Union[None, Awaitable[None]]]
AccessCheck = Callable[[RequestContext], Union[bool, Awaitable[bool]]]
Validator = Callable[[Any], Union[Sequence[str], Awaitable[Sequence[str]]]]


def allow_all(ctx: RequestContext) -> bool:
    return True


@dataclass
class ResourceOptions:
    # default page size, SACRUD.DEFAULT_PAGE_LIMIT if not set
    take: Optional[int] = None
    # static ordering, f.i. {"name": "ASC", "id": "DESC"}
    order: Dict[str, str] = field(default_factory=dict)
    # eager loaded relationships, dotted paths load nested relationships
    relations: List[str] = field(default_factory=list)
    # loaded columns, all columns if empty
    select: List[str] = field(default_factory=list)
    # serialized fields of list and detail responses, all loaded fields if empty
    list_fields: List[str] = field(default_factory=list)
    detail_fields: List[str] = field(default_factory=list)
    methods: Iterable[str] = DEFAULT_HTTP_METHODS
    # query string keys that aren't filters (besides limit, offset, order_by and select)
    extra_query_keys: Iterable[str] = ()
    # patch allow/deny lists, default to the model "updatable_fields" and "not_updatable_fields" attributes
    updatable_fields: Optional[Iterable[str]] = None
    read_only_fields: Optional[Iterable[str]] = None
    allow_client_generated_ids: bool = False
    validator: Validator = validate_instance
    has_access: AccessCheck = allow_all
    # hooks
    pre_list: Optional[PreGetHook] = None
    after_list: Optional[AfterListHook] = None
    pre_detail: Optional[PreGetHook] = None
    after_detail: Optional[AfterGetHook] = None
    pre_post: Optional[ItemHook] = None
    after_post: Optional[ItemHook] = None
    pre_patch: Optional[ItemHook] = None
    after_patch: Optional[ItemHook] = None
    after_delete: Optional[AfterDeleteHook] = None

    def __post_init__(self) -> None:
        self.methods = frozenset(method.upper() for method in self.methods)
