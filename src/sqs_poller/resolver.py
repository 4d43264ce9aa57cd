"""Queue address resolution.

Addresses are resolved once per queue when its polling loop starts and are
cached for the loop's lifetime.
"""

from __future__ import annotations

import asyncio

import httpx

from sqs_poller.logging import get_logger
from sqs_poller.transport.base import QueueTransport
from sqs_poller.transport.errors import TransportError

log = get_logger("sqs_poller.resolver")


class QueueAddressResolver:
    """Resolve queue names to URLs for the active environment.

    - Against the local emulator the URL is synthesized as
      ``{endpoint}/queue/{name}``; its lookup is unreliable right after
      creation.
    - Otherwise ``GetQueueUrl`` is used. When it fails and an endpoint
      override exists the URL is synthesized; without an override the lookup
      is retried every ``retry_delay_seconds`` until it succeeds.

    The resolved URL is then rewritten onto the endpoint override (scheme,
    host, port and credentials), keeping only the path.
    """

    def __init__(
        self,
        transport: QueueTransport,
        endpoint: str | None = None,
        local_emulator: bool = False,
        retry_delay_seconds: float = 10.0,
    ):
        self._transport = transport
        self._endpoint = endpoint.rstrip("/") if endpoint else None
        self._local_emulator = local_emulator
        self._retry_delay_seconds = retry_delay_seconds

    def synthesize(self, queue_name: str) -> str:
        """Build ``{endpoint}/queue/{queue_name}``."""
        return f"{self._endpoint}/queue/{queue_name}"

    async def resolve(self, queue_name: str) -> str:
        """Return the rewritten URL of ``queue_name``."""
        queue_url = await self._lookup(queue_name)
        resolved = self.rewrite(queue_url)
        log.debug("queue_url_resolved", queue=queue_name, queue_url=resolved)
        return resolved

    async def _lookup(self, queue_name: str) -> str:
        if self._local_emulator and self._endpoint:
            return self.synthesize(queue_name)

        attempt = 0
        while True:
            attempt += 1
            try:
                return await self._transport.get_queue_url(queue_name)
            except TransportError as e:
                if self._endpoint:
                    log.warning(
                        "queue_url_lookup_failed_using_endpoint",
                        queue=queue_name,
                        error=e.message,
                    )
                    return self.synthesize(queue_name)
                log.warning(
                    "queue_url_lookup_failed_retrying",
                    queue=queue_name,
                    attempt=attempt,
                    retry_in=self._retry_delay_seconds,
                    error=e.message,
                )
                await asyncio.sleep(self._retry_delay_seconds)

    def rewrite(self, queue_url: str) -> str:
        """Move ``queue_url`` onto the endpoint override, preserving its path."""
        if not self._endpoint:
            return queue_url

        endpoint = httpx.URL(self._endpoint)
        rewritten = httpx.URL(queue_url).copy_with(
            scheme=endpoint.scheme,
            host=endpoint.host,
            port=endpoint.port,
            username=endpoint.username,
            password=endpoint.password,
        )
        return str(rewritten)
