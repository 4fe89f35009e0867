"""Invoke helper: call sync or async handlers uniformly.

Handlers can be plain callables or objects with an ``async def
__call__``. The router and the app both call user handlers, so the
sync/async check lives here.

Usage::

    from perch._internal.invoke import invoke

    response = await invoke(handler, request)
"""

import inspect
from typing import Any


async def invoke(handler: Any, *args: Any, **kwargs: Any) -> Any:
    """Call a handler and await the result if it's awaitable."""
    result = handler(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result
