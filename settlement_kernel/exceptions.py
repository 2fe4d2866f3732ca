"""
Typed Exception Hierarchy for the Settlement Engine.

Every error the engine, the boundary mappers, the settings loader or the
services raise is a typed exception with a machine-readable ``code`` class
attribute and its context stored as attributes, so callers catch by type and
APIs report by code rather than by parsing messages.

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    SettlementError (base)
    |
    +-- SessionError
    |   +-- SessionStateError
    |   +-- AllocationNotFoundError
    |   +-- SessionNotFoundError
    |   +-- SessionAlreadyExistsError
    |
    +-- MappingError
    |   +-- SnapshotMappingError
    |   +-- UnknownPaymentTypeError
    |
    +-- SettingsError
    |   +-- InvalidSettingsError
    |
    +-- SubmissionError
        +-- SubmissionValidationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category    | Code                        | When Raised
------------|-----------------------------|---------------------------------------
Session     | INVALID_SESSION_STATE       | Command not accepted in current state
            | ALLOCATION_NOT_FOUND        | Edit targets an unselected invoice
            | SESSION_NOT_FOUND           | Registry has no session for the id
            | SESSION_ALREADY_EXISTS      | Registry already holds the id
------------|-----------------------------|---------------------------------------
Mapping     | SNAPSHOT_MAPPING_FAILED     | Raw API record cannot be mapped
            | UNKNOWN_PAYMENT_TYPE        | Payment type outside the known set
------------|-----------------------------|---------------------------------------
Settings    | INVALID_SETTINGS            | YAML settings fail validation
------------|-----------------------------|---------------------------------------
Submission  | SUBMISSION_INVALID          | Draft header fails submit validation

Not errors: blank or unparseable numeric input (a blank value), an invoice
reference missing from the catalog (a stale reference, flagged on the
session), and missing advance/history (the zero-baseline case).

===============================================================================
HANDLING PATTERNS
===============================================================================

    try:
        session = apply_command(session, SetReceivedAmount("inv-9", value))
    except AllocationNotFoundError as e:
        return {"error": e.code, "invoice_id": e.invoice_id}
    except SessionStateError as e:
        return {"error": e.code, "status": e.status, "command": e.command}
"""

from __future__ import annotations

from typing import Any


class SettlementError(Exception):
    """
    Base exception for all settlement engine errors.

    All subclasses carry a ``code`` class attribute for machine-readable
    error identification.
    """

    code: str = "SETTLEMENT_ERROR"


# Session-related exceptions


class SessionError(SettlementError):
    """Base exception for reconciliation session errors."""

    code: str = "SESSION_ERROR"


class SessionStateError(SessionError):
    """The session's current state does not accept the command."""

    code: str = "INVALID_SESSION_STATE"

    def __init__(self, command: str, status: str, reason: str):
        self.command = command
        self.status = status
        self.reason = reason
        super().__init__(
            f"Cannot apply {command} to session in state {status}: {reason}"
        )


class AllocationNotFoundError(SessionError):
    """A field edit targets an invoice that is not selected."""

    code: str = "ALLOCATION_NOT_FOUND"

    def __init__(self, invoice_id: str):
        self.invoice_id = invoice_id
        super().__init__(f"No allocation selected for invoice: {invoice_id}")


class SessionNotFoundError(SessionError):
    """The session registry holds no session for the given id."""

    code: str = "SESSION_NOT_FOUND"

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Reconciliation session not found: {session_id}")


class SessionAlreadyExistsError(SessionError):
    """A session is already open for the given draft id."""

    code: str = "SESSION_ALREADY_EXISTS"

    def __init__(self, session_id: str):
        self.session_id = session_id
        super().__init__(f"Reconciliation session already open: {session_id}")


# Boundary mapping exceptions


class MappingError(SettlementError):
    """Base exception for boundary mapping errors."""

    code: str = "MAPPING_ERROR"


class SnapshotMappingError(MappingError):
    """A raw catalog or history record cannot be mapped to a document."""

    code: str = "SNAPSHOT_MAPPING_FAILED"

    def __init__(self, record_type: str, field: str, value: Any, reason: str):
        self.record_type = record_type
        self.field = field
        self.value = value
        self.reason = reason
        super().__init__(
            f"Cannot map {record_type}.{field}={value!r}: {reason}"
        )


class UnknownPaymentTypeError(MappingError):
    """Payment type is not Advance, Payment or IncomeTax."""

    code: str = "UNKNOWN_PAYMENT_TYPE"

    def __init__(self, payment_type: Any):
        self.payment_type = payment_type
        super().__init__(f"Unknown payment type: {payment_type!r}")


# Settings exceptions


class SettingsError(SettlementError):
    """Base exception for settings errors."""

    code: str = "SETTINGS_ERROR"


class InvalidSettingsError(SettingsError):
    """Loaded settings failed validation."""

    code: str = "INVALID_SETTINGS"

    def __init__(self, source: str, errors: list[str]):
        self.source = source
        self.errors = errors
        super().__init__(
            f"Invalid settlement settings in {source}:\n"
            + "\n".join(f"  - {e}" for e in errors)
        )


# Submission exceptions


class SubmissionError(SettlementError):
    """Base exception for draft submission errors."""

    code: str = "SUBMISSION_ERROR"


class SubmissionValidationError(SubmissionError):
    """The payment header failed submit-time validation."""

    code: str = "SUBMISSION_INVALID"

    def __init__(self, errors: tuple[Any, ...]):
        self.errors = errors
        super().__init__(
            "Payment draft is not submittable: "
            + "; ".join(getattr(e, "message", str(e)) for e in errors)
        )
