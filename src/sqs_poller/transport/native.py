"""Transport for the native SQS API via aioboto3."""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Mapping, Sequence
from typing import Any

import aioboto3
from botocore.exceptions import BotoCoreError, ClientError

from sqs_poller.logging import get_logger
from sqs_poller.models import MAX_DELETE_BATCH_ENTRIES, Message
from sqs_poller.transport.base import QueueTransport
from sqs_poller.transport.errors import as_transport_error

log = get_logger("sqs_poller.transport.native")


def chunked(items: Sequence[Any], size: int) -> list[list[Any]]:
    """Split ``items`` into consecutive groups of at most ``size``."""
    return [list(items[i : i + size]) for i in range(0, len(items), size)]


class NativeTransport(QueueTransport):
    """Queue transport delegating to the SQS SDK.

    One SQS client is opened lazily and shared by every queue using this
    transport until :meth:`close`.
    """

    def __init__(
        self,
        region: str,
        endpoint: str | None = None,
        access_key_id: str | None = None,
        secret_access_key: str | None = None,
        wait_time_seconds: int = 5,
        session: aioboto3.Session | None = None,
    ):
        """Initialize the native transport.

        Args:
            region: AWS region.
            endpoint: Optional endpoint override.
            access_key_id: Access key ID.
            secret_access_key: Secret access key.
            wait_time_seconds: Long-poll wait for ReceiveMessage.
            session: Optional aioboto3 session.
        """
        self._region = region
        self._endpoint = endpoint
        self._access_key_id = access_key_id
        self._secret_access_key = secret_access_key
        self._wait_time_seconds = wait_time_seconds
        self._session = session or aioboto3.Session()
        self._client: Any = None
        self._exit_stack: contextlib.AsyncExitStack | None = None
        self._client_lock = asyncio.Lock()

    async def _get_client(self) -> Any:
        async with self._client_lock:
            if self._client is None:
                stack = contextlib.AsyncExitStack()
                self._client = await stack.enter_async_context(
                    self._session.client(
                        "sqs",
                        region_name=self._region,
                        endpoint_url=self._endpoint,
                        aws_access_key_id=self._access_key_id,
                        aws_secret_access_key=self._secret_access_key,
                    )
                )
                self._exit_stack = stack
                log.debug("sqs_client_opened", region=self._region, endpoint=self._endpoint)
            return self._client

    async def close(self) -> None:
        """Close the SQS client."""
        if self._exit_stack is not None:
            await self._exit_stack.aclose()
            self._exit_stack = None
            self._client = None
            log.debug("sqs_client_closed")

    async def _call(self, operation: str, **kwargs: Any) -> dict[str, Any]:
        client = await self._get_client()
        try:
            return await getattr(client, operation)(**kwargs)  # type: ignore[no-any-return]
        except (ClientError, BotoCoreError) as e:
            raise as_transport_error(e) from e

    async def create_queue(
        self,
        endpoint: str | None,
        queue_name: str,
        attributes: Mapping[str, str],
    ) -> None:
        await self._call("create_queue", QueueName=queue_name, Attributes=dict(attributes))

    async def receive(self, address: str, max_messages: int) -> list[Message]:
        response = await self._call(
            "receive_message",
            QueueUrl=address,
            MaxNumberOfMessages=max_messages,
            AttributeNames=["All"],
            MessageAttributeNames=["All"],
            WaitTimeSeconds=self._wait_time_seconds,
        )
        return [Message.from_sdk(raw) for raw in response.get("Messages") or []]

    async def delete_batch(self, address: str, messages: Sequence[Message]) -> int:
        entries = [
            {"Id": message.message_id, "ReceiptHandle": message.receipt_handle}
            for message in messages
        ]
        responses = await asyncio.gather(
            *(
                self._call("delete_message_batch", QueueUrl=address, Entries=group)
                for group in chunked(entries, MAX_DELETE_BATCH_ENTRIES)
            )
        )
        failed_count = 0
        for response in responses:
            for failed in response.get("Failed") or []:
                failed_count += 1
                log.warning(
                    "message_delete_failed",
                    queue_url=address,
                    message_id=failed.get("Id"),
                    code=failed.get("Code"),
                    error=failed.get("Message"),
                )
        return len(entries) - failed_count

    async def get_queue_url(self, queue_name: str) -> str:
        response = await self._call("get_queue_url", QueueName=queue_name)
        return str(response.get("QueueUrl") or "")
