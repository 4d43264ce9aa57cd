"""Select the transport for the configured endpoint."""

from __future__ import annotations

from sqs_poller.config import Settings
from sqs_poller.logging import get_logger
from sqs_poller.transport.base import QueueTransport
from sqs_poller.transport.emulator import EmulatorTransport
from sqs_poller.transport.native import NativeTransport

log = get_logger("sqs_poller.transport.factory")


def create_transport(settings: Settings) -> QueueTransport:
    """Build the transport matching ``settings.endpoint``.

    The choice is made once; callers never branch on the backend again.
    """
    if settings.is_local_emulator:
        log.info("transport_selected", backend="emulator", endpoint=settings.endpoint)
        return EmulatorTransport(
            endpoint=settings.endpoint or "",
            timeout=settings.request_timeout_seconds,
        )

    log.info("transport_selected", backend="native", endpoint=settings.endpoint)
    return NativeTransport(
        region=settings.region,
        endpoint=settings.endpoint,
        access_key_id=settings.access_key_id.get_secret_value(),
        secret_access_key=settings.secret_access_key.get_secret_value(),
        wait_time_seconds=settings.wait_time_seconds,
    )
