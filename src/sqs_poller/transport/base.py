"""Transport adapter interface shared by both queue backends."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping, Sequence

from sqs_poller.models import Message


class QueueTransport(ABC):
    """Create / receive / delete over one wire format.

    Every method raises :class:`~sqs_poller.transport.errors.TransportError`
    on failure, classified the same way on both backends.
    """

    @abstractmethod
    async def create_queue(
        self,
        endpoint: str | None,
        queue_name: str,
        attributes: Mapping[str, str],
    ) -> None:
        """Create ``queue_name`` with the given string attributes."""

    @abstractmethod
    async def receive(self, address: str, max_messages: int) -> list[Message]:
        """Receive up to ``max_messages`` messages from the queue at ``address``."""

    @abstractmethod
    async def delete_batch(self, address: str, messages: Sequence[Message]) -> int:
        """Delete ``messages`` using their receipt handles.

        Returns:
            Number of messages the backend confirmed as deleted.
        """

    @abstractmethod
    async def get_queue_url(self, queue_name: str) -> str:
        """Look up the address of ``queue_name``."""

    async def close(self) -> None:
        """Release network resources."""
