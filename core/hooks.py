"""Invocation of user-supplied hooks (sync or async)."""

import inspect
from collections.abc import Callable
from typing import Any

from core.exceptions import HookError


async def call_hook(name: str, hook: Callable[..., Any], *args: Any) -> Any:
    """Call ``hook`` and await its result when it returns an awaitable.

    Any exception is re-raised as HookError naming the hook.
    """
    try:
        result = hook(*args)
        if inspect.isawaitable(result):
            result = await result
    except Exception as e:
        raise HookError(name, e) from e
    return result


def call_sync_hook(name: str, hook: Callable[..., Any], *args: Any) -> Any:
    """Call a hook that must complete synchronously."""
    try:
        return hook(*args)
    except Exception as e:
        raise HookError(name, e) from e
