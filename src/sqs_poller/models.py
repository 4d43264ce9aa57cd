"""Queue models: event source definitions and received messages.

A :class:`QueueDefinition` is the declared identity of one SQS event source.
A :class:`Message` is an immutable work item parsed from a receive response.
A batch is simply a ``list[Message]`` that lives for one polling cycle.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from sqs_poller.catalog import ResourceCatalog

DEFAULT_BATCH_SIZE = 10

# Backend limit on MaxNumberOfMessages for a single ReceiveMessage call
MAX_RECEIVE_MESSAGES = 10

# Backend limit on entries in a single DeleteMessageBatch call
MAX_DELETE_BATCH_ENTRIES = 10


def queue_name_from_arn(arn: str) -> str:
    """Extract the queue name from ``arn:aws:sqs:<region>:<account>:<name>``."""
    parts = arn.split(":")
    if len(parts) < 6 or not parts[5]:
        raise ValueError(f"Not a queue ARN: {arn!r}")
    return parts[5]


def build_queue_arn(region: str, account_id: str, queue_name: str) -> str:
    """Build the ARN of a queue from its region, account and name."""
    return f"arn:aws:sqs:{region}:{account_id}:{queue_name}"


@dataclass(frozen=True)
class QueueDefinition:
    """Declared identity of a queue event source.

    Attributes:
        function_key: Consumer function this queue feeds.
        queue_name: Name of the queue.
        arn: Queue ARN, passed to the consumer as ``eventSourceARN``.
        region: Region of the queue.
        account_id: Owning account.
        enabled: Disabled definitions are never polled.
        batch_size: Target number of messages per polling cycle.
    """

    function_key: str
    queue_name: str
    arn: str
    region: str
    account_id: str
    enabled: bool = True
    batch_size: int = DEFAULT_BATCH_SIZE

    def __post_init__(self) -> None:
        if self.batch_size < 1:
            raise ValueError(f"batch_size must be >= 1, got: {self.batch_size}")

    @classmethod
    def from_event(
        cls,
        raw: str | Mapping[str, Any],
        region: str,
        account_id: str,
        function_key: str = "",
        catalog: ResourceCatalog | None = None,
    ) -> QueueDefinition:
        """Build a definition from a raw ``sqs`` event declaration.

        ``raw`` is either an ARN string or a mapping with any of ``arn``,
        ``queueName``, ``batchSize`` and ``enabled``. An ``arn`` of the form
        ``{"Fn::GetAtt": [LogicalId, "Arn"]}`` is resolved through ``catalog``.

        Raises:
            ValueError: If neither a usable ARN nor a queue name is declared.
        """
        if isinstance(raw, str):
            raw = {"arn": raw}

        arn = raw.get("arn")
        queue_name = raw.get("queueName")

        if isinstance(arn, Mapping):
            arn = _resolve_get_att(arn, region, account_id, catalog)

        if arn and not queue_name:
            queue_name = queue_name_from_arn(arn)
        if queue_name and not arn:
            arn = build_queue_arn(region, account_id, queue_name)
        if not arn or not queue_name:
            raise ValueError(f"SQS event for {function_key!r} declares neither arn nor queueName")

        batch_size = raw.get("batchSize")
        enabled = raw.get("enabled")
        return cls(
            function_key=function_key,
            queue_name=str(queue_name),
            arn=str(arn),
            region=region,
            account_id=account_id,
            enabled=True if enabled is None else bool(enabled),
            batch_size=DEFAULT_BATCH_SIZE if batch_size is None else int(batch_size),
        )


def _resolve_get_att(
    ref: Mapping[str, Any],
    region: str,
    account_id: str,
    catalog: ResourceCatalog | None,
) -> str | None:
    """Resolve ``{"Fn::GetAtt": [LogicalId, "Arn"]}`` to a queue ARN."""
    get_att = ref.get("Fn::GetAtt")
    if not isinstance(get_att, list | tuple) or not get_att or catalog is None:
        return None
    queue_name = catalog.queue_name_for(get_att[0])
    if queue_name is None:
        return None
    return build_queue_arn(region, account_id, queue_name)


@dataclass(frozen=True)
class Message:
    """A received message.

    ``attributes`` and ``message_attributes`` use the SDK response shapes
    (``{"SentTimestamp": "..."}`` and ``{"name": {"StringValue": ...,
    "DataType": ...}}``) regardless of which backend produced the message.
    """

    message_id: str
    receipt_handle: str
    body: str
    attributes: dict[str, str] = field(default_factory=dict)
    message_attributes: dict[str, dict[str, Any]] = field(default_factory=dict)
    md5_of_body: str | None = None

    @classmethod
    def from_sdk(cls, data: Mapping[str, Any]) -> Message:
        """Create a Message from a native ``ReceiveMessage`` entry."""
        return cls(
            message_id=data["MessageId"],
            receipt_handle=data["ReceiptHandle"],
            body=data.get("Body", ""),
            attributes=dict(data.get("Attributes") or {}),
            message_attributes=dict(data.get("MessageAttributes") or {}),
            md5_of_body=data.get("MD5OfBody"),
        )


@dataclass
class PollerStats:
    """Counters for one queue's polling loop."""

    cycles: int = 0
    messages_received: int = 0
    batches_processed: int = 0
    messages_deleted: int = 0
    invocation_failures: int = 0
    delete_failures: int = 0
    fetch_failures: int = 0
    last_error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "cycles": self.cycles,
            "messages_received": self.messages_received,
            "batches_processed": self.batches_processed,
            "messages_deleted": self.messages_deleted,
            "invocation_failures": self.invocation_failures,
            "delete_failures": self.delete_failures,
            "fetch_failures": self.fetch_failures,
            "last_error": self.last_error,
        }
