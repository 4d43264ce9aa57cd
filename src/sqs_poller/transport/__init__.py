"""Queue transports for the native SQS API and the local XML emulator.

This package provides:
- QueueTransport: The create / receive / delete interface
- EmulatorTransport: XML Query API over httpx
- NativeTransport: SQS SDK over aioboto3
- TransportError: Backend-agnostic, classified failures
"""

from sqs_poller.transport.base import QueueTransport
from sqs_poller.transport.emulator import EmulatorTransport
from sqs_poller.transport.errors import (
    TransportError,
    TransportErrorKind,
    as_transport_error,
    classify_error,
)
from sqs_poller.transport.factory import create_transport
from sqs_poller.transport.native import NativeTransport

__all__ = [
    # Interface
    "QueueTransport",
    "create_transport",
    # Backends
    "EmulatorTransport",
    "NativeTransport",
    # Errors
    "TransportError",
    "TransportErrorKind",
    "as_transport_error",
    "classify_error",
]
