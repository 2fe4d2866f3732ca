"""
Validation outcomes for the submission header.

Submit-time checks collect every problem rather than stopping at the
first, so the form can flag each offending field at once.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass


@dataclass(frozen=True)
class ValidationError:
    """One problem with a form field. A value, not an exception."""

    code: str
    message: str
    field: str | None = None


@dataclass(frozen=True)
class ValidationResult:
    errors: tuple[ValidationError, ...] = ()

    @property
    def is_valid(self) -> bool:
        return not self.errors

    @property
    def codes(self) -> tuple[str, ...]:
        return tuple(e.code for e in self.errors)

    def for_field(self, name: str) -> tuple[ValidationError, ...]:
        """Errors raised against the form field ``name``."""
        return tuple(e for e in self.errors if e.field == name)

    @classmethod
    def from_errors(cls, errors: Iterable[ValidationError]) -> ValidationResult:
        return cls(tuple(errors))

    def __bool__(self) -> bool:
        return self.is_valid
