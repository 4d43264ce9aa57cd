"""Idempotent queue provisioning from declared resources."""

from __future__ import annotations

import asyncio

from sqs_poller.catalog import ResourceCatalog
from sqs_poller.logging import get_logger
from sqs_poller.models import QueueDefinition
from sqs_poller.transport.base import QueueTransport
from sqs_poller.transport.errors import TransportError, as_transport_error

log = get_logger("sqs_poller.provisioner")


class QueueProvisioner:
    """Create queues before they are polled.

    An "already exists" answer counts as success. Any other failure is
    retried ``retries`` times, ``retry_delay_seconds`` apart; running out of
    retries only logs a warning, since the queue may exist already or appear
    later and the fetch path tolerates a missing queue.
    """

    def __init__(
        self,
        transport: QueueTransport,
        catalog: ResourceCatalog,
        endpoint: str | None = None,
        retries: int = 5,
        retry_delay_seconds: float = 1.0,
    ):
        self._transport = transport
        self._catalog = catalog
        self._endpoint = endpoint
        self._retries = retries
        self._retry_delay_seconds = retry_delay_seconds

    async def provision(self, definition: QueueDefinition) -> bool:
        """Create the queue of ``definition``.

        Returns:
            True if the queue was created or already existed.
        """
        queue_name = definition.queue_name
        attributes = self._catalog.queue_attributes(queue_name)
        remaining = self._retries

        while True:
            try:
                await self._transport.create_queue(self._endpoint, queue_name, attributes)
                log.debug("queue_created", queue=queue_name, attributes=sorted(attributes))
                return True
            except Exception as e:
                error: TransportError = as_transport_error(e)

            if error.is_queue_already_exists:
                log.debug("queue_already_exists", queue=queue_name)
                return True

            if remaining <= 0:
                log.warning(
                    "queue_create_failed",
                    queue=queue_name,
                    attempts=self._retries + 1,
                    error=error.message,
                )
                return False

            log.warning(
                "queue_create_retrying",
                queue=queue_name,
                attempts_left=remaining,
                error=error.message,
            )
            remaining -= 1
            await asyncio.sleep(self._retry_delay_seconds)
