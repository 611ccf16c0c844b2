# List response envelope:
# {
#     "meta": {"count": 10, "limit": 10, "offset": 0, "total": 25, "next": "/books?limit=10&offset=10"},
#     "objects": [...]
# }
from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import urlencode

from .query_plan import QueryPlan


class ListResponse:
    """
    Pagination metadata and the serialized items of a list request
    """

    def __init__(
        self,
        objects: List[Any],
        plan: QueryPlan,
        total: int,
        count: int,
        request_query: Mapping[str, Any],
        endpoint_url: str,
    ) -> None:
        self.meta: Dict[str, Any] = {"count": count, "limit": 0, "offset": 0, "total": total}
        self.meta.update(self.build_meta(plan, total, request_query, endpoint_url))
        self.objects = objects

    @staticmethod
    def build_meta(plan: QueryPlan, total: int, query: Mapping[str, Any], endpoint_url: str) -> Dict[str, Any]:
        """
        The next link repeats the request query string with the offset advanced by the limit,
        it is omitted on the last page
        """
        offset = plan.skip or 0
        limit = plan.take or 0
        meta: Dict[str, Any] = {"limit": limit, "offset": offset}
        next_link = next_page_link(endpoint_url, query, offset, limit, total)
        if next_link is not None:
            meta["next"] = next_link
        return meta

    def to_dict(self) -> Dict[str, Any]:
        return {"meta": self.meta, "objects": self.objects}


def next_page_link(endpoint_url: str, query: Mapping[str, Any], offset: int, limit: int, total: int) -> Optional[str]:
    """
    :return: url of the next page or None
    """
    if limit <= 0 or total <= offset + limit:
        return None
    next_query = dict(query)
    next_query["offset"] = offset + limit
    return f"{endpoint_url}?{urlencode(sorted(next_query.items()), doseq=True)}"
