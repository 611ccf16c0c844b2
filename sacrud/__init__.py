# flake8: noqa: F401
#
# sacrud_init has to be imported first: the other modules use sacrud.log and sacrud.SACRUD
#
from .sacrud_init import SACRUD, log
from . import config
from .errors import (
    CrudError,
    BadRequestError,
    BadMethodError,
    InvalidQueryKey,
    UnauthorizedError,
    NotFoundError,
    ValidationError,
    GenericError,
)
from .query_key import Modifier, QueryKey, parse_query_key
from .relations import FieldInfo, RelationKind, field_index, resolve_field
from .query_plan import QueryPlan
from .filters import apply_predicate
from .assembler import build_query_plan, build_detail_plan
from .envelope import ListResponse
from .context import RequestContext
from .storage import SessionStorage, AsyncSessionStorage, DeleteResult
from .options import ResourceOptions
from .resource import ApiResource, HandlerResponse
from .api import SACRUDAPI
from .__about__ import __version__, __description__

__all__ = (
    "__version__",
    "__description__",
    #
    "SACRUD",
    "SACRUDAPI",
    "ApiResource",
    "HandlerResponse",
    "ResourceOptions",
    "RequestContext",
    # query:
    "Modifier",
    "QueryKey",
    "parse_query_key",
    "FieldInfo",
    "RelationKind",
    "field_index",
    "resolve_field",
    "QueryPlan",
    "apply_predicate",
    "build_query_plan",
    "build_detail_plan",
    "ListResponse",
    # storage:
    "SessionStorage",
    "AsyncSessionStorage",
    "DeleteResult",
    # Errors:
    "CrudError",
    "BadRequestError",
    "BadMethodError",
    "InvalidQueryKey",
    "UnauthorizedError",
    "NotFoundError",
    "ValidationError",
    "GenericError",
)
