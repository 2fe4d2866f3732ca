"""
settlement_services -- Package init and public API.

Responsibility:
    Stateful orchestration over the pure engines: hosting drafts with a
    single writer each, rendering session snapshots, and building
    submission payloads. This is the only layer that holds mutable state
    or reads the wall clock.

Architecture position:
    Services -- orchestration over engines + kernel + config.

    Dependency direction:
        settlement_services/ -> settlement_engines/  (allowed)
        settlement_services/ -> settlement_config/   (allowed)
        settlement_engines/  -> settlement_services/ (FORBIDDEN)
        settlement_kernel/   -> settlement_services/ (FORBIDDEN)
"""

from settlement_kernel.logging_config import get_logger

logger = get_logger("services")

from settlement_services.rendering import render_allocation, render_preview, render_session
from settlement_services.session_registry import SessionRegistry
from settlement_services.submission import (
    PaymentHeader,
    Submission,
    build_submission,
    validate_header,
)

__all__ = [
    "PaymentHeader",
    "SessionRegistry",
    "Submission",
    "build_submission",
    "render_allocation",
    "render_preview",
    "render_session",
    "validate_header",
]
