"""Fetch → invoke → delete lifecycle for one batch."""

from __future__ import annotations

from sqs_poller.events import build_event
from sqs_poller.invoker import ConsumerInvoker
from sqs_poller.logging import get_logger
from sqs_poller.models import Message, PollerStats, QueueDefinition
from sqs_poller.transport.base import QueueTransport
from sqs_poller.transport.errors import TransportError

log = get_logger("sqs_poller.coordinator")


class LifecycleCoordinator:
    """Hand a batch to its consumer and delete it only if the consumer succeeded.

    A failed invocation leaves every message in the queue for redelivery.
    Deleting from a queue that no longer exists is logged and dropped; any
    other delete failure propagates to the polling cycle, which logs it.
    """

    def __init__(self, transport: QueueTransport, invoker: ConsumerInvoker):
        self._transport = transport
        self._invoker = invoker

    async def process(
        self,
        definition: QueueDefinition,
        address: str,
        batch: list[Message],
        stats: PollerStats | None = None,
    ) -> bool:
        """Run the consumer for ``batch`` and delete it on success.

        Returns:
            True if the batch was consumed and deleted.

        Raises:
            TransportError: If deletion failed for a reason other than a
                missing queue.
        """
        stats = stats if stats is not None else PollerStats()
        event = build_event(batch, definition.region, definition.arn)

        try:
            await self._invoker.invoke(definition.function_key, event)
        except Exception as e:
            stats.invocation_failures += 1
            stats.last_error = str(e)
            log.warning(
                "consumer_invocation_failed",
                function=definition.function_key,
                queue=definition.queue_name,
                count=len(batch),
                error=str(e),
                exc_info=True,
            )
            return False

        stats.batches_processed += 1

        try:
            deleted = await self._transport.delete_batch(address, batch)
        except TransportError as e:
            stats.delete_failures += 1
            stats.last_error = e.message
            if not e.is_queue_not_found:
                raise
            log.warning(
                "queue_not_found_on_delete",
                queue=definition.queue_name,
                count=len(batch),
            )
            return False

        stats.messages_deleted += deleted
        log.debug(
            "batch_deleted",
            function=definition.function_key,
            queue=definition.queue_name,
            count=deleted,
            requested=len(batch),
        )
        return True
