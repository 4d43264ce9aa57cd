"""Declared resources: the key-value catalog queue attributes are read from.

The catalog is keyed by logical resource name. Queue resources carry a
``Properties`` object with a ``QueueName`` and any number of queue attributes
(``VisibilityTimeout``, ``RedrivePolicy``, ...).
"""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import Any


def serialize_attribute(value: Any) -> str:
    """Render a declared attribute value as the string the queue API expects."""
    if isinstance(value, Mapping | list | tuple):
        return json.dumps(value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return ""
    return str(value)


class ResourceCatalog:
    """Read-only view over declared resources."""

    def __init__(self, resources: Mapping[str, Any] | None = None) -> None:
        self._resources: dict[str, Any] = dict(resources or {})

    def __len__(self) -> int:
        return len(self._resources)

    def find_queue_properties(self, queue_name: str) -> dict[str, Any] | None:
        """Return the ``Properties`` of the resource whose ``QueueName`` matches exactly."""
        for resource in self._resources.values():
            if not isinstance(resource, Mapping):
                continue
            properties = resource.get("Properties")
            if isinstance(properties, Mapping) and properties.get("QueueName") == queue_name:
                return dict(properties)
        return None

    def queue_name_for(self, logical_id: str) -> str | None:
        """Return the ``QueueName`` declared by a logical resource, if any."""
        resource = self._resources.get(logical_id)
        if not isinstance(resource, Mapping):
            return None
        properties = resource.get("Properties")
        if not isinstance(properties, Mapping):
            return None
        queue_name = properties.get("QueueName")
        return str(queue_name) if queue_name else None

    def queue_attributes(self, queue_name: str) -> dict[str, str]:
        """Return the declared attributes of a queue, serialized for CreateQueue.

        ``QueueName`` identifies the queue and is not sent as an attribute.
        """
        properties = self.find_queue_properties(queue_name)
        if not properties:
            return {}
        return {
            key: serialize_attribute(value)
            for key, value in properties.items()
            if key != "QueueName"
        }
