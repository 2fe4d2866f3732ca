"""
Settings Validator (``settlement_config.validator``).

Checks a parsed ``SettlementSettings`` before it is handed to services.
Errors block use of the settings; there are no warnings.

Checks
------
* ``decimal_places`` is between 0 and 8.
* ``rounding`` names a ``decimal`` rounding mode.
* Every payment type is one the engine knows.
* Payment mode ids and bank ids are unique and non-blank.
"""

from __future__ import annotations

import decimal
from dataclasses import dataclass, field

from settlement_config.schema import SettlementSettings
from settlement_kernel.domain.documents import PaymentType

ROUNDING_MODES = frozenset(
    name for name in dir(decimal) if name.startswith("ROUND_")
)

MAX_DECIMAL_PLACES = 8


@dataclass
class SettingsValidationResult:
    """``is_valid`` is True only when ``errors`` is empty."""

    errors: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)


def _check_unique(ids: list[str], label: str, result: SettingsValidationResult) -> None:
    seen: set[str] = set()
    for item_id in ids:
        if not item_id.strip():
            result.add_error(f"{label} id must not be blank")
        elif item_id in seen:
            result.add_error(f"Duplicate {label} id: {item_id!r}")
        seen.add(item_id)


def validate_settings(settings: SettlementSettings) -> SettingsValidationResult:
    """Validate parsed settings; never raises."""
    result = SettingsValidationResult()

    if not 0 <= settings.decimal_places <= MAX_DECIMAL_PLACES:
        result.add_error(
            f"decimal_places must be between 0 and {MAX_DECIMAL_PLACES}, "
            f"got {settings.decimal_places}"
        )

    if settings.rounding not in ROUNDING_MODES:
        result.add_error(f"Unknown rounding mode: {settings.rounding!r}")

    known_types = {t.value for t in PaymentType}
    if not settings.payment_types:
        result.add_error("At least one payment type must be enabled")
    for payment_type in settings.payment_types:
        if payment_type not in known_types:
            result.add_error(f"Unknown payment type: {payment_type!r}")

    _check_unique([m.id for m in settings.payment_modes], "payment mode", result)
    _check_unique([b.id for b in settings.banks], "bank", result)

    return result
