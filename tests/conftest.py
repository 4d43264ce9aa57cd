"""Pytest fixtures for sqs_poller tests."""

from __future__ import annotations

import os
from collections.abc import Callable, Mapping, Sequence
from typing import Any

import pytest

from sqs_poller.models import Message
from sqs_poller.transport.base import QueueTransport


@pytest.fixture(scope="session", autouse=True)
def setup_test_environment():
    """Keep a developer's SQS_POLLER_* environment out of the tests."""
    for key in list(os.environ):
        if key.startswith("SQS_POLLER_"):
            del os.environ[key]

    from sqs_poller.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Clear settings cache before each test."""
    from sqs_poller.config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


def _settings(**overrides: Any):
    from sqs_poller.config import Settings

    values: dict[str, Any] = {
        "region": "us-east-1",
        "account_id": "123456789012",
        "endpoint": None,
        "poll_idle_delay_seconds": 0,
        "create_retry_delay_seconds": 0,
        "resolve_retry_delay_seconds": 0,
        "emulator_settle_seconds": 0,
        "environment": "test",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def native_settings():
    """Settings targeting the native backend with no endpoint override."""
    return _settings()


@pytest.fixture
def emulator_settings():
    """Settings targeting the local XML emulator."""
    return _settings(endpoint="http://localhost:9324", auto_create=True)


def make_messages(count: int, prefix: str = "msg") -> list[Message]:
    return [
        Message(
            message_id=f"{prefix}-{i}",
            receipt_handle=f"{prefix}-handle-{i}",
            body=f'{{"n": {i}}}',
            attributes={"ApproximateReceiveCount": "1"},
        )
        for i in range(count)
    ]


@pytest.fixture
def messages() -> Callable[..., list[Message]]:
    """Factory for lists of messages."""
    return make_messages


class FakeTransport(QueueTransport):
    """In-memory transport with scripted receive results.

    Each entry of ``receives`` is returned (or raised, if it is an exception)
    by one ``receive`` call; once exhausted every receive returns ``[]``.
    """

    def __init__(
        self,
        receives: Sequence[Any] | None = None,
        queue_url: str = "https://sqs.us-east-1.amazonaws.com/123456789012/orders",
    ):
        self.receives = list(receives or [])
        self.queue_url = queue_url
        self.receive_calls: list[tuple[str, int]] = []
        self.deleted: list[tuple[str, list[Message]]] = []
        self.created: list[tuple[str | None, str, dict[str, str]]] = []
        self.create_errors: list[Exception] = []
        self.url_errors: list[Exception] = []
        self.delete_errors: list[Exception] = []
        # Messages per delete_batch call the backend reports as failed
        self.undeletable = 0
        self.closed = False

    async def create_queue(
        self, endpoint: str | None, queue_name: str, attributes: Mapping[str, str]
    ) -> None:
        self.created.append((endpoint, queue_name, dict(attributes)))
        if self.create_errors:
            raise self.create_errors.pop(0)

    async def receive(self, address: str, max_messages: int) -> list[Message]:
        self.receive_calls.append((address, max_messages))
        if not self.receives:
            return []
        result = self.receives.pop(0)
        if isinstance(result, Exception):
            raise result
        return list(result)

    async def delete_batch(self, address: str, messages: Sequence[Message]) -> int:
        if self.delete_errors:
            raise self.delete_errors.pop(0)
        self.deleted.append((address, list(messages)))
        return len(messages) - self.undeletable

    async def get_queue_url(self, queue_name: str) -> str:
        if self.url_errors:
            raise self.url_errors.pop(0)
        return self.queue_url

    async def close(self) -> None:
        self.closed = True


@pytest.fixture
def fake_transport_cls() -> type[FakeTransport]:
    """The in-memory transport class."""
    return FakeTransport
