"""Load declared functions, their SQS event sources and resources from JSON."""

from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from sqs_poller.catalog import ResourceCatalog


class DefinitionsError(Exception):
    """Raised when the definitions file is missing or malformed."""

    pass


@dataclass
class Definitions:
    """Parsed definitions file.

    Attributes:
        handlers: Function key -> handler import path.
        events: ``(function_key, raw sqs event)`` pairs in declaration order.
        resources: Catalog of declared resources.
    """

    handlers: dict[str, str] = field(default_factory=dict)
    events: list[tuple[str, Any]] = field(default_factory=list)
    resources: ResourceCatalog = field(default_factory=ResourceCatalog)


def parse_definitions(data: Mapping[str, Any]) -> Definitions:
    """Build :class:`Definitions` from an already-decoded document.

    ``resources`` may hold the logical resources directly or nest them under
    a ``Resources`` key.
    """
    functions = data.get("functions") or {}
    if not isinstance(functions, Mapping):
        raise DefinitionsError("'functions' must be an object")

    definitions = Definitions()
    for function_key, function in functions.items():
        if not isinstance(function, Mapping):
            raise DefinitionsError(f"Function {function_key!r} must be an object")
        handler = function.get("handler")
        if handler:
            definitions.handlers[function_key] = str(handler)
        for event in function.get("events") or []:
            if isinstance(event, Mapping) and "sqs" in event:
                definitions.events.append((function_key, event["sqs"]))

    resources = data.get("resources") or {}
    if not isinstance(resources, Mapping):
        raise DefinitionsError("'resources' must be an object")
    if isinstance(resources.get("Resources"), Mapping):
        resources = resources["Resources"]
    definitions.resources = ResourceCatalog(resources)
    return definitions


def load_definitions(path: str | Path) -> Definitions:
    """Read and parse the definitions file at ``path``.

    Raises:
        DefinitionsError: If the file cannot be read or is not valid JSON.
    """
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as e:
        raise DefinitionsError(f"Cannot read definitions file {path}: {e}") from e
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise DefinitionsError(f"Invalid JSON in {path}: {e}") from e
    if not isinstance(data, Mapping):
        raise DefinitionsError(f"{path} must contain a JSON object")
    return parse_definitions(data)
