"""Tests for handler invocation."""

import sys
import types
from typing import Any

import pytest

from sqs_poller.invoker import HandlerInvoker, HandlerNotFoundError, load_handler


@pytest.fixture
def handlers_module(monkeypatch: pytest.MonkeyPatch) -> types.ModuleType:
    """Register an importable module holding sync and async handlers."""
    module = types.ModuleType("fake_handlers")
    module.calls = []  # type: ignore[attr-defined]

    def sync_handler(event: dict[str, Any], context: dict[str, Any]) -> None:
        module.calls.append(("sync", event, context))  # type: ignore[attr-defined]

    async def async_handler(event: dict[str, Any], context: dict[str, Any]) -> None:
        module.calls.append(("async", event, context))  # type: ignore[attr-defined]

    def failing_handler(event: dict[str, Any], context: dict[str, Any]) -> None:
        raise RuntimeError("bad message")

    module.sync_handler = sync_handler  # type: ignore[attr-defined]
    module.async_handler = async_handler  # type: ignore[attr-defined]
    module.failing_handler = failing_handler  # type: ignore[attr-defined]
    module.not_callable = 42  # type: ignore[attr-defined]
    monkeypatch.setitem(sys.modules, "fake_handlers", module)
    return module


class TestLoadHandler:
    """Tests for load_handler()."""

    def test_colon_path(self, handlers_module: types.ModuleType) -> None:
        assert load_handler("fake_handlers:sync_handler") is handlers_module.sync_handler

    def test_dotted_path(self, handlers_module: types.ModuleType) -> None:
        assert load_handler("fake_handlers.async_handler") is handlers_module.async_handler

    def test_missing_module(self) -> None:
        with pytest.raises(HandlerNotFoundError):
            load_handler("does_not_exist_anywhere:handler")

    def test_not_callable(self, handlers_module: types.ModuleType) -> None:
        with pytest.raises(HandlerNotFoundError):
            load_handler("fake_handlers:not_callable")

    def test_invalid_path(self) -> None:
        with pytest.raises(HandlerNotFoundError):
            load_handler("handler")


class TestHandlerInvoker:
    """Tests for HandlerInvoker."""

    @pytest.mark.asyncio
    async def test_sync_handler(self, handlers_module: types.ModuleType) -> None:
        invoker = HandlerInvoker({"process": "fake_handlers:sync_handler"})
        await invoker.invoke("process", {"Records": []})

        kind, event, context = handlers_module.calls[0]
        assert kind == "sync"
        assert event == {"Records": []}
        assert context["function_name"] == "process"

    @pytest.mark.asyncio
    async def test_async_handler(self, handlers_module: types.ModuleType) -> None:
        invoker = HandlerInvoker({"process": "fake_handlers:async_handler"})
        await invoker.invoke("process", {"Records": []})

        assert handlers_module.calls[0][0] == "async"

    @pytest.mark.asyncio
    async def test_handler_failure_propagates(self, handlers_module: types.ModuleType) -> None:
        invoker = HandlerInvoker({"process": "fake_handlers:failing_handler"})
        with pytest.raises(RuntimeError, match="bad message"):
            await invoker.invoke("process", {"Records": []})

    @pytest.mark.asyncio
    async def test_unknown_function(self) -> None:
        invoker = HandlerInvoker({})
        with pytest.raises(HandlerNotFoundError):
            await invoker.invoke("missing", {"Records": []})
