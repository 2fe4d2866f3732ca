"""
settlement_ingestion -- Boundary mapping of snapshot data.

Maps the loosely-shaped invoice and payment records returned by the
persistence API into the strict kernel documents, and loads recorded
scenarios (snapshots plus command histories) from JSON or YAML files.

Architecture:
    settlement_ingestion/ is a top-level package. Nothing in kernel/ or
    engines/ imports from ingestion.
"""
