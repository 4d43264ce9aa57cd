"""Queue poller: provisioning, resolution and per-queue polling loops.

For each declared event source the poller provisions the queue (when
``auto_create`` is on), resolves its URL once, then schedules a polling
cycle that re-enqueues itself after every run:

    fetch batch -> (non-empty) invoke consumer -> delete on success -> reschedule

A cycle never ends the loop: every failure inside it is logged and the next
cycle is scheduled anyway. Loops stop only when the process shuts down.
"""

from __future__ import annotations

import asyncio
from collections.abc import Iterable, Mapping
from typing import Any

import structlog

from sqs_poller.catalog import ResourceCatalog
from sqs_poller.config import Settings
from sqs_poller.coordinator import LifecycleCoordinator
from sqs_poller.fetcher import BatchFetcher
from sqs_poller.invoker import ConsumerInvoker
from sqs_poller.logging import get_logger
from sqs_poller.models import Message, PollerStats, QueueDefinition
from sqs_poller.provisioner import QueueProvisioner
from sqs_poller.resolver import QueueAddressResolver
from sqs_poller.scheduler import PollingScheduler
from sqs_poller.transport.base import QueueTransport

log = get_logger("sqs_poller.poller")

RawEventSource = tuple[str, str | Mapping[str, Any]]


class QueuePoller:
    """Drives one polling loop per enabled queue on a shared scheduler."""

    def __init__(
        self,
        settings: Settings,
        transport: QueueTransport,
        invoker: ConsumerInvoker,
        catalog: ResourceCatalog | None = None,
        scheduler: PollingScheduler | None = None,
    ):
        """Initialize the poller.

        Args:
            settings: Poller settings.
            transport: Transport selected for the configured endpoint.
            invoker: Runs consumer functions.
            catalog: Declared resources for queue attributes.
            scheduler: Shared scheduler; a paused one is created if omitted.
        """
        self._settings = settings
        self._transport = transport
        self._catalog = catalog or ResourceCatalog()
        self._scheduler = scheduler or PollingScheduler()
        self._resolver = QueueAddressResolver(
            transport,
            endpoint=settings.endpoint,
            local_emulator=settings.is_local_emulator,
            retry_delay_seconds=settings.resolve_retry_delay_seconds,
        )
        self._provisioner = QueueProvisioner(
            transport,
            self._catalog,
            endpoint=settings.endpoint,
            retries=settings.create_retries,
            retry_delay_seconds=settings.create_retry_delay_seconds,
        )
        self._fetcher = BatchFetcher(transport, max_per_call=settings.receive_max_messages)
        self._coordinator = LifecycleCoordinator(transport, invoker)
        self._stats: dict[str, PollerStats] = {}
        self._addresses: dict[str, str] = {}

    @property
    def scheduler(self) -> PollingScheduler:
        """The shared scheduler."""
        return self._scheduler

    @property
    def stats(self) -> dict[str, PollerStats]:
        """Per-queue statistics keyed by queue name."""
        return self._stats

    @property
    def addresses(self) -> dict[str, str]:
        """Resolved queue URLs keyed by queue name."""
        return dict(self._addresses)

    def definition_for(self, function_key: str, raw: str | Mapping[str, Any]) -> QueueDefinition:
        """Build the definition of one declared event source."""
        return QueueDefinition.from_event(
            raw,
            region=self._settings.region,
            account_id=self._settings.account_id,
            function_key=function_key,
            catalog=self._catalog,
        )

    async def create(self, events: Iterable[RawEventSource]) -> list[QueueDefinition]:
        """Set up polling for every declared ``(function_key, sqs_event)`` pair.

        Queues are set up concurrently; a slow resolution only delays its own
        queue.
        """
        definitions = [self.definition_for(function_key, raw) for function_key, raw in events]
        await asyncio.gather(*(self.add_queue(definition) for definition in definitions))
        return definitions

    async def add_queue(self, definition: QueueDefinition) -> None:
        """Provision, resolve and start polling one queue."""
        if not definition.enabled:
            log.info(
                "queue_disabled",
                function=definition.function_key,
                queue=definition.queue_name,
            )
            return

        if self._settings.auto_create:
            await self._provisioner.provision(definition)
            if self._settings.is_local_emulator:
                # The emulator makes new queues addressable asynchronously
                await asyncio.sleep(self._settings.emulator_settle_seconds)

        address = await self._resolver.resolve(definition.queue_name)
        self._addresses[definition.queue_name] = address
        self._stats.setdefault(definition.queue_name, PollerStats())
        self._schedule(definition, address)
        log.info(
            "queue_polling_scheduled",
            function=definition.function_key,
            queue=definition.queue_name,
            queue_url=address,
            batch_size=definition.batch_size,
        )

    def start(self) -> None:
        """Resume every queued and future polling cycle."""
        self._scheduler.resume()
        log.info("poller_started", queues=len(self._addresses))

    def stop(self) -> None:
        """Hold back future cycles; a running cycle completes."""
        self._scheduler.pause()
        log.info(
            "poller_stopped",
            running=self._scheduler.running,
            pending=self._scheduler.pending,
        )
        self.log_stats()

    async def close(self) -> None:
        """Cancel outstanding cycles and release the transport."""
        await self._scheduler.shutdown()
        await self._transport.close()
        self.log_stats()

    def log_stats(self) -> None:
        """Log the counters of every polled queue."""
        for queue_name, stats in self._stats.items():
            log.info(
                "poller_stats",
                queue=queue_name,
                queue_url=self._addresses.get(queue_name),
                **stats.to_dict(),
            )

    def _schedule(self, definition: QueueDefinition, address: str) -> None:
        async def cycle() -> None:
            await self._run_cycle(definition, address)

        self._scheduler.add(cycle, name=f"poll:{definition.queue_name}")

    async def _run_cycle(self, definition: QueueDefinition, address: str) -> None:
        stats = self._stats.setdefault(definition.queue_name, PollerStats())
        stats.cycles += 1
        batch: list[Message] = []

        with structlog.contextvars.bound_contextvars(
            queue=definition.queue_name,
            function=definition.function_key,
        ):
            try:
                batch = await self._fetcher.fetch(
                    address, definition.batch_size, queue_name=definition.queue_name
                )
                stats.messages_received += len(batch)
                if batch:
                    await self._coordinator.process(definition, address, batch, stats)
            except asyncio.CancelledError:
                raise
            except Exception as e:
                if not batch:
                    stats.fetch_failures += 1
                stats.last_error = str(e)
                log.warning("polling_cycle_failed", error=str(e), exc_info=True)

        if not batch and self._settings.poll_idle_delay_seconds > 0:
            await asyncio.sleep(self._settings.poll_idle_delay_seconds)

        self._schedule(definition, address)
