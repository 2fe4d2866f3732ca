"""
Settings Loader (``settlement_config.loader``).

Responsibility
--------------
Loads the settlement YAML document and parses it into the frozen
``settlement_config.schema`` types. The single public entry point for
runtime settings is ``settlement_config.get_active_settings()``; services
do not call this module directly.

Invariants enforced
-------------------
* Every parsed object is a frozen dataclass from ``schema.py``.
* ``compute_checksum`` produces a deterministic SHA-256 hash of the
  parsed document for identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates; the entry point
  reports it as ``InvalidSettingsError``.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from settlement_config.schema import BankDef, PaymentModeDef, SettlementSettings


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the document in canonical JSON form (sorted keys)."""
    canonical = json.dumps(data, sort_keys=True, separators=(",", ":"), default=str)
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


def parse_payment_mode(data: dict[str, Any] | str) -> PaymentModeDef:
    """Parse a payment mode; a bare string is both id and name."""
    if isinstance(data, str):
        return PaymentModeDef(id=data, name=data)
    return PaymentModeDef(
        id=str(data["id"]),
        name=str(data.get("name", data["id"])),
        requires_bank=bool(data.get("requires_bank", False)),
    )


def parse_bank(data: dict[str, Any]) -> BankDef:
    return BankDef(id=str(data["id"]), name=str(data["name"]))


def parse_settings(data: dict[str, Any]) -> SettlementSettings:
    """
    Parse the full settings document.

    Preconditions:
        - ``data`` has ``settings_id`` and ``version`` keys.
    Raises:
        KeyError: if a required key is missing.
        ValueError / TypeError: if a value has the wrong shape.
    """
    precision = data.get("precision") or {}
    return SettlementSettings(
        settings_id=str(data["settings_id"]),
        version=int(data["version"]),
        decimal_places=int(precision.get("decimal_places", 2)),
        rounding=str(precision.get("rounding", "ROUND_HALF_UP")),
        payment_types=tuple(str(t) for t in data.get("payment_types", ())),
        payment_modes=tuple(parse_payment_mode(m) for m in data.get("payment_modes", ())),
        banks=tuple(parse_bank(b) for b in data.get("banks", ())),
        checksum=compute_checksum(data),
    )
