#
import inspect
from typing import Any


async def maybe_await(value: Any) -> Any:
    """
    Hooks and access checks may be plain functions or coroutine functions
    :param value: the value returned by the hook
    :return: the awaited value if it's awaitable, the value otherwise
    """
    if inspect.isawaitable(value):
        return await value
    return value
