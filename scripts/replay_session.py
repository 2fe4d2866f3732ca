#!/usr/bin/env python3
"""
Replay a recorded payment draft and print the resulting session.

Usage:
    python3 scripts/replay_session.py <scenario.yaml>
    python3 scripts/replay_session.py <scenario.json> --json
    python3 scripts/replay_session.py <scenario.yaml> --steps --preview

Examples:
    # Formatted allocation table after the last command
    python3 scripts/replay_session.py tests/fixtures/partial_payment.yaml

    # Full rendered session as JSON
    python3 scripts/replay_session.py tests/fixtures/partial_payment.yaml --json

    # Print the session status after every command
    python3 scripts/replay_session.py tests/fixtures/partial_payment.yaml --steps

The scenario's catalog and history are loaded into the draft first, then
its commands are applied in order, exactly as a live draft would apply
them.
"""

import argparse
import json
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

W = 80


# =============================================================================
# Formatting helpers
# =============================================================================


def banner(title: str) -> None:
    print()
    print("=" * W)
    print(f"  {title}")
    print("=" * W)


def section(title: str) -> None:
    print()
    print(f"--- {title} ---")
    print()


def field(label: str, value, indent: int = 2) -> None:
    pad = " " * indent
    print(f"{pad}{label:<20} {value if value not in (None, '') else '-'}")


def print_session(rendered: dict) -> None:
    section("Draft")
    field("seller", rendered["seller"])
    field("buyer", rendered["buyer"])
    field("payment type", rendered["paymentType"])
    field("payment number", rendered["paymentNumber"])
    field("status", rendered["status"])
    field("total advance", rendered["totalAdvance"])
    field("advance received", rendered["advanceReceived"])
    field("remaining tax", rendered["remainingTax"])

    section("Allocations")
    header = f"  {'invoice':<14}{'gross':>14}{'received':>14}{'adjusted':>14}{'balance':>14}"
    print(header)
    print("  " + "-" * (len(header) - 2))
    for row in rendered["allocations"]:
        marker = " *" if row["staleReference"] else ""
        print(
            f"  {row['invoiceNumber']:<14}{row['grossValue']:>14}"
            f"{row['receivedAmount'] or '-':>14}{row['invoiceAdjusted']:>14}"
            f"{row['balance']:>14}{marker}"
        )
    totals = rendered["totals"]
    print("  " + "-" * (len(header) - 2))
    print(
        f"  {'total':<14}{totals['grossValue']:>14}{totals['receivedAmount']:>14}"
        f"{totals['invoiceAdjusted']:>14}{totals['balance']:>14}"
    )
    if rendered["staleReferences"]:
        print()
        print("  * not in the current invoice catalog")


def print_preview(rows: list) -> None:
    section("Catalog preview")
    for row in rows:
        mark = "x" if row["selected"] else " "
        print(
            f"  [{mark}] {row['invoiceNumber']:<14}{row['grossValue']:>14}"
            f"{row['balance']:>14}  suggest {row['suggestedAdjustment']}"
        )


# =============================================================================
# Main
# =============================================================================


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Replay a recorded payment draft.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "examples:\n"
            "  python3 scripts/replay_session.py scenario.yaml\n"
            "  python3 scripts/replay_session.py scenario.json --json\n"
        ),
    )
    parser.add_argument("scenario", type=Path, help="Scenario file (.json, .yaml)")
    parser.add_argument(
        "--json", action="store_true",
        help="Output the rendered session as JSON instead of formatted text",
    )
    parser.add_argument(
        "--steps", action="store_true",
        help="Print the session status after every command",
    )
    parser.add_argument(
        "--preview", action="store_true",
        help="Also print the catalog preview of the final pair",
    )
    parser.add_argument(
        "--config", type=Path, default=None,
        help="Settings YAML (default: packaged settlement.yaml)",
    )
    parser.add_argument(
        "--log-level", default=None,
        help="Emit structured logs to stderr at this level (e.g. DEBUG)",
    )
    args = parser.parse_args()

    if args.log_level:
        from settlement_kernel.logging_config import configure_logging
        configure_logging(level=getattr(logging, args.log_level.upper(), logging.INFO))
    else:
        logging.disable(logging.CRITICAL)

    from settlement_config import get_active_settings
    from settlement_engines.commands import LoadSnapshot
    from settlement_engines.preview import catalog_preview
    from settlement_engines.session import apply_command, new_session
    from settlement_ingestion.adapters.json_adapter import load_scenario
    from settlement_kernel.exceptions import SettlementError
    from settlement_services.rendering import render_preview, render_session

    try:
        settings = get_active_settings(args.config)
        scenario = load_scenario(args.scenario)
    except (OSError, SettlementError) as exc:
        print(f"  ERROR: {exc}", file=sys.stderr)
        return 1

    session = new_session(
        decimal_places=settings.decimal_places,
        rounding=settings.rounding,
    )
    session = apply_command(session, LoadSnapshot(scenario.catalog, scenario.history))

    if not args.json:
        banner(f"SCENARIO: {scenario.name}")
        field("invoices", len(scenario.catalog))
        field("prior payments", len(scenario.history))
        field("commands", len(scenario.commands))

    if args.steps and not args.json:
        section("Commands")
    for index, command in enumerate(scenario.commands, start=1):
        try:
            session = apply_command(session, command)
        except SettlementError as exc:
            print(f"  ERROR at command {index} ({type(command).__name__}): {exc}", file=sys.stderr)
            return 1
        if args.steps and not args.json:
            print(f"  {index:>3}. {type(command).__name__:<22} -> {session.status.value}")

    rendered = render_session(session)
    if args.json:
        output = {"session": rendered}
        if args.preview:
            output["preview"] = render_preview(catalog_preview(session), session.decimal_places)
        print(json.dumps(output, indent=2))
        return 0

    print_session(rendered)
    if args.preview:
        print_preview(render_preview(catalog_preview(session), session.decimal_places))
    print()
    return 0


if __name__ == "__main__":
    sys.exit(main())
