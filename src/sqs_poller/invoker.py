"""Consumer invocation boundary.

The poller only needs to hand an event to a function and learn whether it
succeeded. :class:`HandlerInvoker` does that for handlers declared as
``"package.module:function"`` paths.
"""

from __future__ import annotations

import asyncio
import importlib
import inspect
from collections.abc import Callable, Mapping
from typing import Any, Protocol

from sqs_poller.logging import get_logger

log = get_logger("sqs_poller.invoker")


class HandlerNotFoundError(Exception):
    """Raised when a function key or handler path cannot be resolved."""

    pass


class ConsumerInvoker(Protocol):
    """Runs a consumer function for one event; raises on failure."""

    async def invoke(self, function_key: str, event: dict[str, Any]) -> None: ...


def load_handler(path: str) -> Callable[..., Any]:
    """Import ``"package.module:function"`` and return the callable.

    Raises:
        HandlerNotFoundError: If the module or attribute cannot be loaded.
    """
    module_name, sep, attribute = path.partition(":")
    if not sep:
        # Serverless-style "package/module.function"
        module_name, _, attribute = path.replace("/", ".").rpartition(".")
    if not module_name or not attribute:
        raise HandlerNotFoundError(f"Invalid handler path: {path!r}")

    try:
        module = importlib.import_module(module_name)
    except ImportError as e:
        raise HandlerNotFoundError(f"Cannot import handler module {module_name!r}: {e}") from e

    handler = getattr(module, attribute, None)
    if not callable(handler):
        raise HandlerNotFoundError(f"{module_name!r} has no callable {attribute!r}")
    return handler  # type: ignore[no-any-return]


class HandlerInvoker:
    """Invoke handlers resolved from import paths.

    Coroutine handlers are awaited; plain functions run in a worker thread so
    a slow handler does not block the polling loop. Handlers are called as
    ``handler(event, context)`` with a small context dict.
    """

    def __init__(self, handlers: Mapping[str, str]):
        """Initialize the invoker.

        Args:
            handlers: Function key -> handler import path.
        """
        self._paths = dict(handlers)
        self._loaded: dict[str, Callable[..., Any]] = {}

    def _resolve(self, function_key: str) -> Callable[..., Any]:
        if function_key not in self._loaded:
            path = self._paths.get(function_key)
            if path is None:
                raise HandlerNotFoundError(f"Unknown function: {function_key!r}")
            self._loaded[function_key] = load_handler(path)
            log.debug("handler_loaded", function=function_key, handler=path)
        return self._loaded[function_key]

    async def invoke(self, function_key: str, event: dict[str, Any]) -> None:
        handler = self._resolve(function_key)
        context = {"function_name": function_key}
        if inspect.iscoroutinefunction(handler):
            await handler(event, context)
        else:
            result = await asyncio.to_thread(handler, event, context)
            if inspect.isawaitable(result):
                await result
