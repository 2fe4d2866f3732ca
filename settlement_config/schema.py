"""
Settlement settings schema.

Defines the typed, frozen form of ``defaults/settlement.yaml``. The loader
parses YAML into these types, the validator checks them, and
``get_active_settings()`` hands the result to services.

The engines never import this module: services pass ``decimal_places``
and ``rounding`` into ``new_session`` explicitly.
"""

from __future__ import annotations

from dataclasses import dataclass, field

# ---------------------------------------------------------------------------
# Directories
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PaymentModeDef:
    """A payment mode offered on the draft header (Cash, Cheque, LC...)."""

    id: str
    name: str
    requires_bank: bool = False


@dataclass(frozen=True)
class BankDef:
    """A bank in the directory; submission resolves ``id`` to ``name``."""

    id: str
    name: str


# ---------------------------------------------------------------------------
# Root
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SettlementSettings:
    """
    Runtime settings of the settlement engine.

    Contract:
        Frozen and validated. ``checksum`` is the SHA-256 of the canonical
        source document and identifies the settings in log traces.
    """

    settings_id: str
    version: int
    decimal_places: int = 2
    rounding: str = "ROUND_HALF_UP"
    payment_types: tuple[str, ...] = ("Advance", "Payment", "IncomeTax")
    payment_modes: tuple[PaymentModeDef, ...] = field(default_factory=tuple)
    banks: tuple[BankDef, ...] = field(default_factory=tuple)
    checksum: str = ""

    def payment_mode(self, mode_id: str) -> PaymentModeDef | None:
        for mode in self.payment_modes:
            if mode.id == mode_id:
                return mode
        return None

    def bank(self, bank_id: str) -> BankDef | None:
        """Look a bank up by id, or by display name for already-resolved values."""
        for bank in self.banks:
            if bank.id == bank_id or bank.name == bank_id:
                return bank
        return None

    def bank_name(self, bank_id: str) -> str:
        """Display name for a bank id; unknown ids pass through unchanged."""
        bank = self.bank(bank_id)
        return bank.name if bank is not None else bank_id
