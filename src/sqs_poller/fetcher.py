"""Batch accumulation over possibly-partial receive responses."""

from __future__ import annotations

from sqs_poller.logging import get_logger
from sqs_poller.models import MAX_RECEIVE_MESSAGES, Message
from sqs_poller.transport.base import QueueTransport
from sqs_poller.transport.errors import TransportError

log = get_logger("sqs_poller.fetcher")


class BatchFetcher:
    """Fill a batch of up to ``batch_size`` messages.

    Receives are issued for ``min(remaining, max_per_call)`` messages until
    the target is met or a receive returns nothing, which means the queue is
    currently empty. A missing queue yields whatever was collected so far.
    """

    def __init__(self, transport: QueueTransport, max_per_call: int = MAX_RECEIVE_MESSAGES):
        self._transport = transport
        self._max_per_call = max_per_call

    async def fetch(self, address: str, batch_size: int, queue_name: str = "") -> list[Message]:
        """Receive up to ``batch_size`` messages from ``address``.

        Raises:
            TransportError: For any failure other than a missing queue.
        """
        messages: list[Message] = []
        remaining = batch_size

        while remaining > 0:
            try:
                received = await self._transport.receive(
                    address, min(remaining, self._max_per_call)
                )
            except TransportError as e:
                if not e.is_queue_not_found:
                    raise
                log.warning("queue_not_found_will_retry", queue=queue_name or address)
                return messages

            if not received:
                break
            # Never hand out more than was asked for
            received = received[:remaining]
            messages.extend(received)
            remaining -= len(received)

        return messages
