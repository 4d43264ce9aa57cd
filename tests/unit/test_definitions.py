"""Tests for loading the definitions file."""

import json
from pathlib import Path

import pytest

from sqs_poller.definitions import DefinitionsError, load_definitions, parse_definitions

DOCUMENT = {
    "functions": {
        "processOrders": {
            "handler": "app.handlers:process_orders",
            "events": [
                {"sqs": "arn:aws:sqs:us-east-1:123456789012:orders"},
                {"http": {"path": "/ignored"}},
            ],
        },
        "audit": {
            "handler": "app.handlers:audit",
            "events": [{"sqs": {"queueName": "audit", "batchSize": 20}}],
        },
    },
    "resources": {
        "Resources": {
            "OrdersQueue": {"Type": "AWS::SQS::Queue", "Properties": {"QueueName": "orders"}}
        }
    },
}


class TestParseDefinitions:
    """Tests for parse_definitions()."""

    def test_handlers_and_events(self) -> None:
        definitions = parse_definitions(DOCUMENT)

        assert definitions.handlers == {
            "processOrders": "app.handlers:process_orders",
            "audit": "app.handlers:audit",
        }
        assert definitions.events == [
            ("processOrders", "arn:aws:sqs:us-east-1:123456789012:orders"),
            ("audit", {"queueName": "audit", "batchSize": 20}),
        ]

    def test_nested_resources(self) -> None:
        definitions = parse_definitions(DOCUMENT)
        assert definitions.resources.queue_name_for("OrdersQueue") == "orders"

    def test_flat_resources(self) -> None:
        definitions = parse_definitions(
            {"resources": {"Q": {"Properties": {"QueueName": "q"}}}}
        )
        assert definitions.resources.queue_name_for("Q") == "q"

    def test_empty_document(self) -> None:
        definitions = parse_definitions({})
        assert definitions.handlers == {}
        assert definitions.events == []

    def test_invalid_functions(self) -> None:
        with pytest.raises(DefinitionsError):
            parse_definitions({"functions": ["not", "an", "object"]})


class TestLoadDefinitions:
    """Tests for load_definitions()."""

    def test_load_file(self, tmp_path: Path) -> None:
        path = tmp_path / "sqs-poller.json"
        path.write_text(json.dumps(DOCUMENT), encoding="utf-8")

        definitions = load_definitions(path)
        assert len(definitions.events) == 2

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(DefinitionsError):
            load_definitions(tmp_path / "missing.json")

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / "broken.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(DefinitionsError):
            load_definitions(path)

    def test_non_object(self, tmp_path: Path) -> None:
        path = tmp_path / "list.json"
        path.write_text("[]", encoding="utf-8")
        with pytest.raises(DefinitionsError):
            load_definitions(path)
