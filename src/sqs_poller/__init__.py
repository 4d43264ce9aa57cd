"""Local SQS event source.

Provisions queues, polls them, hands each batch to a consumer function and
deletes the messages it handled. Works against the native SQS API and the
ElasticMQ-style XML emulator.
"""

from sqs_poller.models import Message, PollerStats, QueueDefinition
from sqs_poller.poller import QueuePoller
from sqs_poller.scheduler import PollingScheduler

__all__ = [
    "Message",
    "PollerStats",
    "PollingScheduler",
    "QueueDefinition",
    "QueuePoller",
]
