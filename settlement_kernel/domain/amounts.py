"""
Amounts -- Decimal helpers with blank-vs-zero semantics.

Responsibility:
    Converts loosely-typed numeric input (form strings, JSON numbers) into
    ``Decimal`` and back into fixed-point display strings. A blank field is
    represented as ``None`` and is distinct from an entered zero.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - Amounts are ``Decimal``; floats are converted through ``str`` so the
      decimal digits the caller saw are the digits that are stored.
    - Unparseable or non-finite input never raises; it becomes blank.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation, localcontext
from typing import Any

ZERO = Decimal("0")


def parse_amount(value: Any) -> Decimal | None:
    """
    Parse a user- or API-supplied amount.

    Postconditions:
        - Returns None for None, empty or whitespace-only strings, and any
          value that is not a finite number.
        - Returns a Decimal otherwise. Thousands separators are accepted.
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, int):
        return Decimal(value)
    if isinstance(value, float):
        value = str(value)
    if not isinstance(value, str):
        return None

    text = value.strip().replace(",", "")
    if not text:
        return None
    try:
        parsed = Decimal(text)
    except InvalidOperation:
        return None
    return parsed if parsed.is_finite() else None


def amount_or_zero(value: Decimal | None) -> Decimal:
    """Blank counts as zero in arithmetic."""
    return ZERO if value is None else value


def quantize(amount: Decimal, places: int = 2, rounding: str = ROUND_HALF_UP) -> Decimal:
    """Round to ``places`` decimal places, however many digits ``amount`` has."""
    exponent = Decimal(1).scaleb(-places)
    digits = max(amount.adjusted(), 0) + places + 2
    with localcontext() as ctx:
        ctx.prec = max(ctx.prec, digits)
        return amount.quantize(exponent, rounding=rounding)


def format_amount(amount: Decimal | None, places: int = 2) -> str:
    """Fixed-point display string; blank renders as an empty string."""
    if amount is None:
        return ""
    return f"{quantize(amount, places):.{places}f}"
