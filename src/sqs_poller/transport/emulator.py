"""Transport for the local XML emulator (ElasticMQ-style Query API).

Requests are unsigned ``POST``s carrying ``Action`` / ``Version`` and the
action parameters in the query string. Responses are XML; they are parsed into
nested dicts with element attributes merged into their node and without
implicit list coercion, so a repeated element becomes a list while a single
one stays a dict. :func:`ensure_list` normalizes that immediately.
"""

from __future__ import annotations

import asyncio
import re
from collections.abc import Mapping, Sequence
from typing import Any
from xml.etree import ElementTree

import httpx

from sqs_poller.logging import get_logger
from sqs_poller.models import Message
from sqs_poller.transport.base import QueueTransport
from sqs_poller.transport.errors import (
    TransportError,
    TransportErrorKind,
    classify_error,
)

log = get_logger("sqs_poller.transport.emulator")

API_VERSION = "2012-11-05"

_ERROR_ENVELOPE_RE = re.compile(r"<ErrorResponse[\s>].*?</ErrorResponse>", re.DOTALL)


def ensure_list(value: Any) -> list[Any]:
    """Normalize a one-or-many XML node into a list."""
    if value is None or value == "":
        return []
    if isinstance(value, list):
        return value
    return [value]


def _local_name(tag: str) -> str:
    return tag.rsplit("}", 1)[-1]


def element_to_value(element: ElementTree.Element) -> Any:
    """Convert an element into a str (leaf) or dict (attributes and/or children)."""
    children = list(element)
    text = (element.text or "").strip() if children else (element.text or "")

    if not children and not element.attrib:
        return text

    node: dict[str, Any] = {_local_name(key): value for key, value in element.attrib.items()}
    for child in children:
        key = _local_name(child.tag)
        value = element_to_value(child)
        if key in node:
            existing = node[key]
            if isinstance(existing, list):
                existing.append(value)
            else:
                node[key] = [existing, value]
        else:
            node[key] = value
    if text:
        node["_"] = text
    return node


def parse_xml(text: str) -> dict[str, Any]:
    """Parse an XML document into ``{root_tag: value}``."""
    root = ElementTree.fromstring(text)
    return {_local_name(root.tag): element_to_value(root)}


def _error_from_envelope(envelope: Mapping[str, Any]) -> TransportError:
    error = envelope.get("Error") if isinstance(envelope, Mapping) else None
    if not isinstance(error, Mapping):
        error = {}
    code = error.get("Code") or "UnknownError"
    message = error.get("Message") or "Unknown error"
    kind = classify_error(code=code, name=code, message=message)
    return TransportError(message, kind=kind, code=code)


def parse_response(text: str) -> dict[str, Any]:
    """Parse an emulator response body, raising on an error envelope.

    Raises:
        TransportError: ``PARSE_FAILURE`` for a malformed body, otherwise the
            classification of the embedded error code / message.
    """
    try:
        result = parse_xml(text)
    except ElementTree.ParseError as e:
        match = _ERROR_ENVELOPE_RE.search(text) if "<ErrorResponse" in text else None
        if match is None:
            raise TransportError(
                f"Failed to parse emulator response: {e}",
                kind=TransportErrorKind.PARSE_FAILURE,
            ) from e
        # The document is broken but it carries an error envelope: parse just that
        try:
            envelope = parse_xml(match.group(0))
        except ElementTree.ParseError as envelope_error:
            raise TransportError(
                f"Emulator XML parse error: {envelope_error}",
                kind=TransportErrorKind.PARSE_FAILURE,
            ) from envelope_error
        raise _error_from_envelope(envelope["ErrorResponse"]) from e

    if "ErrorResponse" in result:
        raise _error_from_envelope(result["ErrorResponse"])
    return result


def _name_value_pairs(value: Any) -> dict[str, Any]:
    pairs: dict[str, Any] = {}
    for entry in ensure_list(value):
        if isinstance(entry, Mapping) and "Name" in entry:
            pairs[entry["Name"]] = entry.get("Value", "")
    return pairs


def message_from_xml(node: Mapping[str, Any]) -> Message:
    """Map a ``<Message>`` node onto the canonical :class:`Message`."""
    message_attributes: dict[str, dict[str, Any]] = {}
    for name, value in _name_value_pairs(node.get("MessageAttribute")).items():
        message_attributes[name] = dict(value) if isinstance(value, Mapping) else {
            "StringValue": value,
            "DataType": "String",
        }
    attributes = {name: str(value) for name, value in _name_value_pairs(node.get("Attribute")).items()}
    return Message(
        message_id=node.get("MessageId", ""),
        receipt_handle=node.get("ReceiptHandle", ""),
        body=node.get("Body", ""),
        attributes=attributes,
        message_attributes=message_attributes,
        md5_of_body=node.get("MD5OfBody") or None,
    )


def messages_from_receive(result: Mapping[str, Any]) -> list[Message]:
    """Extract the messages of a parsed ``ReceiveMessage`` response, in document order."""
    response = result.get("ReceiveMessageResponse", result)
    if not isinstance(response, Mapping):
        return []
    receive_result = response.get("ReceiveMessageResult")
    if not isinstance(receive_result, Mapping):
        return []
    return [
        message_from_xml(node)
        for node in ensure_list(receive_result.get("Message"))
        if isinstance(node, Mapping)
    ]


class EmulatorTransport(QueueTransport):
    """Queue transport speaking the XML Query API of the local emulator."""

    def __init__(
        self,
        endpoint: str,
        timeout: float = 30.0,
        client: httpx.AsyncClient | None = None,
    ):
        """Initialize the emulator transport.

        Args:
            endpoint: Emulator base URL, e.g. ``http://localhost:9324``.
            timeout: Request timeout in seconds.
            client: Optional pre-built HTTP client.
        """
        self._endpoint = endpoint.rstrip("/")
        self._timeout = timeout
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(timeout=self._timeout)
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            self._client = None
            log.debug("emulator_client_closed")

    async def request(
        self,
        url: str,
        action: str,
        params: Mapping[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Issue one Query API action and return the parsed response.

        Raises:
            TransportError: On network failure, HTTP error or error envelope.
        """
        query = {"Action": action, "Version": API_VERSION}
        for key, value in (params or {}).items():
            if value is not None:
                query[key] = str(value)

        try:
            client = await self._get_client()
            response = await client.post(
                url,
                params=query,
                headers={"Content-Type": "application/x-www-form-urlencoded"},
            )
        except httpx.HTTPError as e:
            raise TransportError(
                f"Emulator request {action} failed: {e}",
                kind=TransportErrorKind.TRANSPORT_FAILURE,
            ) from e

        # Only error envelopes are worth parsing on a failed status
        if response.is_error and "<ErrorResponse" not in response.text:
            raise TransportError(
                f"Emulator request {action} returned HTTP {response.status_code}",
                kind=TransportErrorKind.TRANSPORT_FAILURE,
                code=str(response.status_code),
            )

        result = parse_response(response.text)
        if response.is_error:
            raise TransportError(
                f"Emulator request {action} returned HTTP {response.status_code}",
                kind=TransportErrorKind.TRANSPORT_FAILURE,
                code=str(response.status_code),
            )
        return result

    async def create_queue(
        self,
        endpoint: str | None,
        queue_name: str,
        attributes: Mapping[str, str],
    ) -> None:
        params: dict[str, str] = {"QueueName": queue_name}
        for index, (key, value) in enumerate(attributes.items(), start=1):
            params[f"Attribute.{index}.Name"] = key
            params[f"Attribute.{index}.Value"] = value

        await self.request((endpoint or self._endpoint).rstrip("/"), "CreateQueue", params)
        log.debug("emulator_queue_created", queue=queue_name)

    async def receive(self, address: str, max_messages: int) -> list[Message]:
        result = await self.request(
            address,
            "ReceiveMessage",
            {"MaxNumberOfMessages": max_messages},
        )
        return messages_from_receive(result)

    async def delete_batch(self, address: str, messages: Sequence[Message]) -> int:
        # DeleteMessageBatch is unreliable on the emulator: delete one by one
        await asyncio.gather(
            *(
                self.request(address, "DeleteMessage", {"ReceiptHandle": message.receipt_handle})
                for message in messages
            )
        )
        return len(messages)

    async def get_queue_url(self, queue_name: str) -> str:
        return f"{self._endpoint}/queue/{queue_name}"
