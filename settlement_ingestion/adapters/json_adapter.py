"""
Scenario file adapter.

Reads a recorded scenario (the snapshots a draft was built from plus the
commands applied to it) from a JSON or YAML file::

    name: partial payment with advance
    sellers:  [{id: "1", sellerName: Acme Mills}]
    buyers:   [{id: "7", buyerName: Zed Traders}]
    invoices: [...]      # invoice API records, or {data: [...]}
    payments: [...]      # payment API records, or {data: [...]}
    commands: [...]      # see settlement_ingestion.mapping.commands

File I/O only; all record shaping is delegated to the mappers.
"""

from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from settlement_engines.commands import Command
from settlement_ingestion.mapping import PartyDirectory, map_catalog, map_commands, map_history
from settlement_kernel.domain.documents import Invoice, PriorPayment
from settlement_kernel.exceptions import SnapshotMappingError
from settlement_kernel.logging_config import get_logger

logger = get_logger("ingestion.json_adapter")

YAML_SUFFIXES = (".yaml", ".yml")


@dataclass(frozen=True)
class Scenario:
    """A mapped scenario, ready to replay."""

    name: str
    catalog: tuple[Invoice, ...]
    history: tuple[PriorPayment, ...]
    commands: tuple[Command, ...]
    directory: PartyDirectory
    source: Path | None = None


def _records(document: dict[str, Any], key: str) -> list[Any]:
    """A record list, unwrapping the API's ``{"data": [...]}`` envelope."""
    value = document.get(key)
    if value is None:
        return []
    if isinstance(value, dict):
        value = value.get("data")
    if not isinstance(value, list):
        raise SnapshotMappingError("scenario", key, type(value).__name__, "expected a list")
    return value


def read_document(source_path: Path, encoding: str = "utf-8") -> dict[str, Any]:
    """
    Load a JSON or YAML file (by suffix) into a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        json.JSONDecodeError / yaml.YAMLError: malformed content.
        SnapshotMappingError: the top level is not an object.
    """
    with source_path.open("r", encoding=encoding) as f:
        if source_path.suffix.lower() in YAML_SUFFIXES:
            data = yaml.safe_load(f)
        else:
            data = json.load(f)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise SnapshotMappingError("scenario", "<root>", type(data).__name__, "expected an object")
    return data


def load_scenario(source_path: Path | str, encoding: str = "utf-8") -> Scenario:
    """Read and map a scenario file."""
    path = Path(source_path)
    document = read_document(path, encoding)

    directory = PartyDirectory.from_records(
        sellers=_records(document, "sellers"),
        buyers=_records(document, "buyers"),
    )
    scenario = Scenario(
        name=str(document.get("name") or path.stem),
        catalog=map_catalog(_records(document, "invoices"), directory),
        history=map_history(_records(document, "payments"), directory),
        commands=map_commands(_records(document, "commands"), directory),
        directory=directory,
        source=path,
    )
    logger.info("scenario_loaded", extra={
        "scenario": scenario.name,
        "source": str(path),
        "invoice_count": len(scenario.catalog),
        "payment_count": len(scenario.history),
        "command_count": len(scenario.commands),
    })
    return scenario
