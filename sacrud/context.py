from typing import Any, Dict, Optional


class RequestContext:
    """
    Normalized request passed to the resource handlers by the routing adapters

    :param body: decoded json body (None if absent or invalid)
    :param path: request path, used to build the pagination links
    :param params: path parameters, f.i. {"id": "1"}
    :param headers: request headers
    :param query: query string, keys passed more than once hold a list of values
    :param method: HTTP method
    :param original_context: the framework request object
    """

    def __init__(
        self,
        body: Any = None,
        path: str = "",
        params: Optional[Dict[str, str]] = None,
        headers: Optional[Dict[str, Any]] = None,
        query: Optional[Dict[str, Any]] = None,
        method: str = "GET",
        original_context: Any = None,
    ) -> None:
        self.body = body
        self.path = path
        self.params = params or {}
        self.headers = headers or {}
        self.query = query or {}
        self.method = method.upper()
        self.original_context = original_context

    def __repr__(self) -> str:
        return f"<RequestContext {self.method} {self.path}>"


def query_dict(items) -> Dict[str, Any]:
    """
    :param items: iterable of (key, value) query string pairs
    :return: dict, keys passed more than once hold a list of values
    """
    result: Dict[str, Any] = {}
    for key, value in items:
        if key not in result:
            result[key] = value
        elif isinstance(result[key], list):
            result[key].append(value)
        else:
            result[key] = [result[key], value]
    return result
