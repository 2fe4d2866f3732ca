"""Boundary mapping of API records and recorded commands into domain types."""

from settlement_ingestion.mapping.commands import map_command, map_commands
from settlement_ingestion.mapping.engine import (
    PartyDirectory,
    gross_value_of,
    map_catalog,
    map_history,
    map_history_allocation,
    map_invoice,
    map_prior_payment,
)

__all__ = [
    "PartyDirectory",
    "gross_value_of",
    "map_catalog",
    "map_command",
    "map_commands",
    "map_history",
    "map_history_allocation",
    "map_invoice",
    "map_prior_payment",
]
