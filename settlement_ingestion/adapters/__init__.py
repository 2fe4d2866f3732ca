"""Scenario file adapters (JSON and YAML)."""

from settlement_ingestion.adapters.json_adapter import Scenario, load_scenario, read_document

__all__ = ["Scenario", "load_scenario", "read_document"]
