"""Tests for scenario file loading and end-to-end replay of a recorded draft."""

import json
from decimal import Decimal
from pathlib import Path

import pytest

from settlement_engines.commands import LoadSnapshot, SetDimensions
from settlement_engines.session import SessionStatus, new_session, replay
from settlement_ingestion.adapters import load_scenario, read_document
from settlement_kernel.exceptions import SnapshotMappingError

FIXTURES = Path(__file__).resolve().parent.parent / "fixtures"
PARTIAL_PAYMENT = FIXTURES / "partial_payment.yaml"

D = Decimal


class TestReadDocument:
    def test_yaml(self):
        assert read_document(PARTIAL_PAYMENT)["name"] == "partial payment with advance"

    def test_json(self, tmp_path):
        path = tmp_path / "s.json"
        path.write_text(json.dumps({"name": "x", "invoices": []}))
        assert read_document(path) == {"name": "x", "invoices": []}

    def test_empty_yaml(self, tmp_path):
        path = tmp_path / "empty.yml"
        path.write_text("")
        assert read_document(path) == {}

    def test_root_must_be_object(self, tmp_path):
        path = tmp_path / "list.json"
        path.write_text("[1, 2]")
        with pytest.raises(SnapshotMappingError):
            read_document(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            read_document(tmp_path / "absent.yaml")


class TestLoadScenario:
    def setup_method(self):
        self.scenario = load_scenario(PARTIAL_PAYMENT)

    def test_catalog_approved_only(self):
        assert [i.id for i in self.scenario.catalog] == ["101", "102"]
        first = self.scenario.catalog[0]
        assert first.seller == "Acme Mills"
        assert first.buyer == "Zed Traders"
        assert first.gross_value == D("5000.00")
        assert first.total_amount == D("4000")

    def test_history(self):
        assert [p.payment_number for p in self.scenario.history] == ["PAY-0001", "PAY-0002", "PAY-0003"]

    def test_commands_resolved(self):
        assert self.scenario.commands[0] == SetDimensions("Acme Mills", "Zed Traders")
        assert len(self.scenario.commands) == 4

    def test_name_defaults_to_stem(self, tmp_path):
        path = tmp_path / "unnamed.json"
        path.write_text("{}")
        scenario = load_scenario(path)
        assert scenario.name == "unnamed"
        assert scenario.catalog == ()

    def test_section_must_be_list(self, tmp_path):
        path = tmp_path / "bad.json"
        path.write_text(json.dumps({"invoices": "INV-1"}))
        with pytest.raises(SnapshotMappingError) as exc_info:
            load_scenario(path)
        assert exc_info.value.field == "invoices"

    def test_logged(self, captured_logs):
        load_scenario(PARTIAL_PAYMENT)
        loaded = [r for r in captured_logs() if r["message"] == "scenario_loaded"]
        assert loaded[0]["command_count"] == 4
        assert loaded[0]["invoice_count"] == 2


class TestScenarioReplay:
    """The recorded draft replays to the figures the clerk saw."""

    def test_partial_payment_with_advance(self):
        scenario = load_scenario(PARTIAL_PAYMENT)
        session = replay(
            scenario.commands,
            replay([LoadSnapshot(scenario.catalog, scenario.history)], new_session()),
        )

        assert session.status == SessionStatus.DIRTY
        assert session.total_advance == D("800")
        assert [line.key for line in session.allocations] == ["101", "102"]

        inherited = session.allocation("101")
        assert inherited.original_balance == D("2000")
        assert inherited.balance == D("1600.00")

        fresh = session.allocation("102")
        assert fresh.balance == D("80.00")

        assert session.advance_received == D("100.00")
        assert session.totals.gross == D("6180.00")
        assert session.totals.balance == D("1680.00")
