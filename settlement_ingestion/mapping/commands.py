"""
Command mapping for recorded draft histories.

A recorded history is a list of objects such as::

    {"command": "SetDimensions", "seller": "1", "buyer": "7", "paymentType": "Payment"}
    {"command": "SetReceivedAmount", "invoiceId": "inv-3", "value": "2,000"}

Keys may be camelCase or snake_case. Seller and buyer ids are resolved
through the ``PartyDirectory``; ``LoadSnapshot`` carries raw ``invoices``
and ``payments`` lists mapped with the document mappers.
"""

from __future__ import annotations

import dataclasses
from collections.abc import Iterable, Mapping
from typing import Any

from settlement_engines.commands import (
    Command,
    DeselectInvoice,
    Finalize,
    LoadSnapshot,
    SelectInvoice,
    SelectPaymentNumber,
    SetAdjustedAmount,
    SetDimensions,
    SetIncomeTaxAmount,
    SetIncomeTaxRate,
    SetReceivedAmount,
    ToggleInvoice,
)
from settlement_ingestion.mapping.engine import PartyDirectory, map_catalog, map_history
from settlement_kernel.exceptions import SnapshotMappingError

COMMAND_TYPES: dict[str, type] = {
    cls.__name__: cls
    for cls in (
        DeselectInvoice,
        Finalize,
        SelectInvoice,
        SelectPaymentNumber,
        SetAdjustedAmount,
        SetDimensions,
        SetIncomeTaxAmount,
        SetIncomeTaxRate,
        SetReceivedAmount,
        ToggleInvoice,
    )
}


# Required fields whose blank state is meaningful (clears the value).
_NULLABLE_FIELDS = frozenset({"value", "payment_number"})


def _camel(name: str) -> str:
    head, *rest = name.split("_")
    return head + "".join(part.title() for part in rest)


def _lookup(record: Mapping[str, Any], name: str) -> Any:
    camel = _camel(name)
    if camel in record:
        return record[camel]
    return record.get(name)


def map_command(
    record: Mapping[str, Any],
    directory: PartyDirectory | None = None,
) -> Command:
    """
    Map one recorded command.

    Raises:
        SnapshotMappingError: unknown command name or a missing required field.
        UnknownPaymentTypeError: ``SetDimensions`` with an unknown type.
    """
    if not isinstance(record, Mapping):
        raise SnapshotMappingError("command", "<record>", record, "expected an object")
    name = str(record.get("command") or record.get("type") or "")

    if name == "LoadSnapshot":
        return LoadSnapshot(
            catalog=map_catalog(record.get("invoices") or (), directory),
            history=map_history(record.get("payments") or (), directory),
        )

    cls = COMMAND_TYPES.get(name)
    if cls is None:
        raise SnapshotMappingError("command", "command", name, "unknown command")

    kwargs: dict[str, Any] = {}
    for f in dataclasses.fields(cls):
        value = _lookup(record, f.name)
        if value is None:
            if f.default is dataclasses.MISSING and f.default_factory is dataclasses.MISSING:
                if f.name in _NULLABLE_FIELDS:
                    kwargs[f.name] = None
                    continue
                raise SnapshotMappingError("command", _camel(f.name), None, f"{name} requires it")
            continue
        kwargs[f.name] = str(value) if f.name.endswith(("_id", "_number")) else value

    if cls is SetDimensions and directory is not None:
        kwargs["seller"] = directory.seller_name(kwargs["seller"])
        kwargs["buyer"] = directory.buyer_name(kwargs["buyer"])
    return cls(**kwargs)


def map_commands(
    records: Iterable[Mapping[str, Any]],
    directory: PartyDirectory | None = None,
) -> tuple[Command, ...]:
    return tuple(map_command(record, directory) for record in records)
