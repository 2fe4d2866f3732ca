"""
settlement_services.session_registry -- Single-writer hosting of drafts.

Responsibility:
    Holds one ``ReconciliationSession`` per draft id and serializes the
    commands sent to each draft. The reducer itself is synchronous and
    atomic; the registry only guarantees that two writers never interleave
    on the same draft.

Architecture position:
    Services -- the only stateful component. Composes the session reducer
    (``settlement_engines.session``) with the settings entrypoint.

Invariants enforced:
    - Single writer per draft: every command on a draft runs under that
      draft's ``threading.Lock``; drafts do not block each other.
    - The stored session is replaced only by a successful command; a
      command that raises leaves the previous session in place.
    - The applied command log replays to the stored session.

Failure modes:
    - SessionAlreadyExistsError: ``open`` with an id already in use.
    - SessionNotFoundError: any operation on an unknown id.
    - Errors from the reducer propagate unchanged after being logged.

Usage:
    registry = SessionRegistry(get_active_settings())
    registry.open("draft-1", catalog=invoices, history=payments)
    registry.dispatch("draft-1", SetDimensions("Acme Mills", "Zed Traders"))
    snapshot = render_session(registry.get("draft-1"))
"""

from __future__ import annotations

import threading
from collections.abc import Iterable
from dataclasses import dataclass, field

from settlement_config import get_active_settings
from settlement_config.schema import SettlementSettings
from settlement_engines.commands import Command, Finalize
from settlement_engines.preview import PreviewLine, catalog_preview
from settlement_engines.session import ReconciliationSession, apply_command, new_session
from settlement_kernel.domain.documents import Invoice, PriorPayment
from settlement_kernel.exceptions import (
    SessionAlreadyExistsError,
    SessionNotFoundError,
    SettlementError,
)
from settlement_kernel.logging_config import LogContext, get_logger
from settlement_services.submission import PaymentHeader, Submission, build_submission

logger = get_logger("services.session_registry")


@dataclass
class _HostedSession:
    session: ReconciliationSession
    lock: threading.Lock = field(default_factory=threading.Lock)
    commands: list[Command] = field(default_factory=list)


class SessionRegistry:
    """
    Hosts payment drafts by id.

    Contract:
        ``dispatch`` applies one command to one draft atomically and
        returns the new session.
    Guarantees:
        - Commands on the same draft are applied one at a time, in lock
          acquisition order.
        - Precision and rounding of new drafts come from the settings the
          registry was built with.
    Non-goals:
        - No persistence, retries or cancellation. A closed draft is gone.
    """

    def __init__(self, settings: SettlementSettings | None = None):
        self._settings = settings if settings is not None else get_active_settings()
        self._sessions: dict[str, _HostedSession] = {}
        self._lock = threading.Lock()

    @property
    def settings(self) -> SettlementSettings:
        return self._settings

    def __contains__(self, session_id: object) -> bool:
        with self._lock:
            return session_id in self._sessions

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def _hosted(self, session_id: str) -> _HostedSession:
        with self._lock:
            hosted = self._sessions.get(session_id)
        if hosted is None:
            raise SessionNotFoundError(session_id)
        return hosted

    def open(
        self,
        session_id: str,
        catalog: Iterable[Invoice] = (),
        history: Iterable[PriorPayment] = (),
    ) -> ReconciliationSession:
        """Start a new EMPTY draft under ``session_id``."""
        session = new_session(
            catalog=catalog,
            history=history,
            decimal_places=self._settings.decimal_places,
            rounding=self._settings.rounding,
        )
        with self._lock:
            if session_id in self._sessions:
                raise SessionAlreadyExistsError(session_id)
            self._sessions[session_id] = _HostedSession(session=session)

        logger.info("session_opened", extra={
            "session_id": session_id,
            "catalog_size": len(session.catalog),
            "history_size": len(session.history),
        })
        return session

    def get(self, session_id: str) -> ReconciliationSession:
        return self._hosted(session_id).session

    def commands(self, session_id: str) -> tuple[Command, ...]:
        """Commands applied to the draft so far, oldest first."""
        hosted = self._hosted(session_id)
        with hosted.lock:
            return tuple(hosted.commands)

    def dispatch(
        self,
        session_id: str,
        command: Command,
        actor_id: str | None = None,
    ) -> ReconciliationSession:
        """
        Apply ``command`` to the draft under its lock.

        Raises:
            SessionNotFoundError: if the draft is unknown.
            SettlementError: whatever the reducer raises; the stored
                session is left unchanged.
        """
        hosted = self._hosted(session_id)
        with hosted.lock, LogContext.bind(session_id=session_id, actor_id=actor_id):
            try:
                session = apply_command(hosted.session, command)
            except SettlementError as exc:
                logger.warning("session_command_rejected", extra={
                    "command": type(command).__name__,
                    "error_code": exc.code,
                    "error_message": str(exc),
                })
                raise
            hosted.session = session
            hosted.commands.append(command)

            logger.debug("session_command_applied", extra={
                "command": type(command).__name__,
                "status": session.status.value,
                "allocation_count": len(session.allocations),
            })
            return session

    def preview(self, session_id: str) -> tuple[PreviewLine, ...]:
        """Catalog preview lines of the draft's current pair."""
        return catalog_preview(self.get(session_id))

    def submit(
        self,
        session_id: str,
        header: PaymentHeader,
        actor_id: str | None = None,
    ) -> Submission:
        """Finalize the draft and return its payload; the draft stays hosted."""
        hosted = self._hosted(session_id)
        with hosted.lock, LogContext.bind(session_id=session_id, actor_id=actor_id):
            submission = build_submission(hosted.session, header, self._settings)
            hosted.session = submission.session
            hosted.commands.append(Finalize())
            return submission

    def close(self, session_id: str) -> ReconciliationSession:
        """Remove the draft and return its last session."""
        with self._lock:
            hosted = self._sessions.pop(session_id, None)
        if hosted is None:
            raise SessionNotFoundError(session_id)
        logger.info("session_closed", extra={
            "session_id": session_id,
            "status": hosted.session.status.value,
            "command_count": len(hosted.commands),
        })
        return hosted.session
