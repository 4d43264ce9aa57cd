"""Consumer event built from a received batch.

The event follows the Lambda SQS record layout so handlers written for the
managed service run unchanged.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from sqs_poller.models import Message

EVENT_SOURCE = "aws:sqs"


def _lower_first(key: str) -> str:
    return key[:1].lower() + key[1:]


def _record_message_attributes(
    message_attributes: dict[str, dict[str, Any]],
) -> dict[str, dict[str, Any]]:
    """``{"StringValue": ..., "DataType": ...}`` -> ``{"stringValue": ..., "dataType": ...}``."""
    records: dict[str, dict[str, Any]] = {}
    for name, value in message_attributes.items():
        record = {_lower_first(key): item for key, item in value.items()}
        record.setdefault("stringListValues", [])
        record.setdefault("binaryListValues", [])
        records[name] = record
    return records


def build_record(message: Message, region: str, arn: str) -> dict[str, Any]:
    """Build one event record for ``message``."""
    return {
        "messageId": message.message_id,
        "receiptHandle": message.receipt_handle,
        "body": message.body,
        "attributes": dict(message.attributes),
        "messageAttributes": _record_message_attributes(message.message_attributes),
        "md5OfBody": message.md5_of_body,
        "eventSource": EVENT_SOURCE,
        "eventSourceARN": arn,
        "awsRegion": region,
    }


def build_event(batch: Sequence[Message], region: str, arn: str) -> dict[str, Any]:
    """Build the consumer event for a batch, preserving message order."""
    return {"Records": [build_record(message, region, arn) for message in batch]}
