"""Tests for idempotent queue provisioning."""

from unittest.mock import AsyncMock, patch

import pytest

from sqs_poller.catalog import ResourceCatalog
from sqs_poller.models import QueueDefinition
from sqs_poller.provisioner import QueueProvisioner
from sqs_poller.transport.errors import TransportError, TransportErrorKind

ORDERS = QueueDefinition.from_event(
    {"queueName": "orders", "batchSize": 5}, "us-east-1", "123456789012", "process"
)


@pytest.fixture
def catalog() -> ResourceCatalog:
    return ResourceCatalog(
        {
            "OrdersQueue": {
                "Type": "AWS::SQS::Queue",
                "Properties": {
                    "QueueName": "orders",
                    "VisibilityTimeout": 60,
                    "RedrivePolicy": {"maxReceiveCount": 3},
                },
            }
        }
    )


class TestQueueProvisioner:
    """Tests for QueueProvisioner.provision()."""

    @pytest.mark.asyncio
    async def test_creates_with_catalog_attributes(self, fake_transport_cls, catalog) -> None:
        transport = fake_transport_cls()
        provisioner = QueueProvisioner(transport, catalog, endpoint="http://localhost:9324")

        assert await provisioner.provision(ORDERS) is True
        assert transport.created == [
            (
                "http://localhost:9324",
                "orders",
                {"VisibilityTimeout": "60", "RedrivePolicy": '{"maxReceiveCount": 3}'},
            )
        ]

    @pytest.mark.asyncio
    async def test_already_exists_message_is_success(self, fake_transport_cls, catalog) -> None:
        transport = fake_transport_cls()
        transport.create_errors = [
            TransportError(
                "A queue named orders already exists",
                kind=TransportErrorKind.QUEUE_ALREADY_EXISTS,
            )
        ]
        provisioner = QueueProvisioner(transport, catalog)

        with patch("sqs_poller.provisioner.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            assert await provisioner.provision(ORDERS) is True

        assert len(transport.created) == 1
        mock_sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unclassified_already_exists_text(self, fake_transport_cls, catalog) -> None:
        transport = fake_transport_cls()
        transport.create_errors = [RuntimeError("Queue orders already exists")]
        provisioner = QueueProvisioner(transport, catalog)

        with patch("sqs_poller.provisioner.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            assert await provisioner.provision(ORDERS) is True

        assert len(transport.created) == 1
        mock_sleep.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_transient_failure_retried(self, fake_transport_cls, catalog) -> None:
        transport = fake_transport_cls()
        transport.create_errors = [TransportError("connection reset")]
        provisioner = QueueProvisioner(transport, catalog, retry_delay_seconds=1.0)

        with patch("sqs_poller.provisioner.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            assert await provisioner.provision(ORDERS) is True

        assert len(transport.created) == 2
        mock_sleep.assert_awaited_once_with(1.0)

    @pytest.mark.asyncio
    async def test_gives_up_after_retries_without_raising(
        self, fake_transport_cls, catalog
    ) -> None:
        transport = fake_transport_cls()
        transport.create_errors = [TransportError("down") for _ in range(10)]
        provisioner = QueueProvisioner(transport, catalog, retries=5, retry_delay_seconds=1.0)

        with patch("sqs_poller.provisioner.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            assert await provisioner.provision(ORDERS) is False

        # One attempt plus five retries
        assert len(transport.created) == 6
        assert mock_sleep.await_count == 5

    @pytest.mark.asyncio
    async def test_queue_without_declared_resource(self, fake_transport_cls) -> None:
        transport = fake_transport_cls()
        provisioner = QueueProvisioner(transport, ResourceCatalog())

        assert await provisioner.provision(ORDERS) is True
        assert transport.created == [(None, "orders", {})]
