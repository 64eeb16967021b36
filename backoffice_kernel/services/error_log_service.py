"""
ErrorLogSink -- best-effort persistence of operational failures.

Responsibility:
    Records a failure (message, stack, component, context) as an
    ``error_logs`` row.  The row is written in its own session so that it
    survives the rollback of the business transaction that failed.

Architecture position:
    Kernel > Services.  Called by module services from their rollback
    path; never raises.

Failure modes:
    - Any failure while recording is logged at WARNING and swallowed: the
      original exception is what the caller re-raises.
"""

from __future__ import annotations

import traceback
from collections.abc import Callable
from typing import Any
from uuid import UUID

from sqlalchemy.orm import Session

from backoffice_kernel.domain.clock import Clock, SystemClock
from backoffice_kernel.logging_config import LogContext, get_logger
from backoffice_kernel.models.error_log import ErrorLogModel

logger = get_logger("services.error_log")

# Actor recorded on rows written by the system itself.
SYSTEM_ACTOR_ID = UUID("00000000-0000-0000-0000-000000000000")


class ErrorLogSink:
    """
    Writes ``ErrorLogModel`` rows outside the caller's transaction.

    Args:
        session_factory: Zero-argument callable returning a new Session.
            Defaults to the kernel engine's session factory, resolved
            lazily at record time.
        clock: Used to timestamp the recorded context.
    """

    def __init__(
        self,
        session_factory: Callable[[], Session] | None = None,
        clock: Clock | None = None,
    ):
        self._session_factory = session_factory
        self._clock = clock or SystemClock()

    def _new_session(self) -> Session:
        if self._session_factory is not None:
            return self._session_factory()
        from backoffice_kernel.db.engine import get_session_factory

        return get_session_factory()()

    def record(
        self,
        message: str,
        component: str,
        exc: BaseException | None = None,
        severity: str = "error",
        context: dict[str, Any] | None = None,
    ) -> UUID | None:
        """
        Persist one error record.

        Returns:
            The id of the new row, or None if recording itself failed.
        """
        merged: dict[str, Any] = dict(LogContext.get_all())
        if context:
            merged.update({k: str(v) for k, v in context.items()})
        merged["recorded_at"] = self._clock.now().isoformat()
        if exc is not None:
            merged["exception_type"] = type(exc).__name__

        stack = (
            "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
            if exc is not None
            else None
        )

        try:
            session = self._new_session()
        except Exception:
            logger.warning("error_log_unavailable", exc_info=True)
            return None

        try:
            row = ErrorLogModel(
                message=message,
                stack=stack,
                component=component,
                severity=severity,
                context=merged,
                created_by_id=SYSTEM_ACTOR_ID,
            )
            session.add(row)
            session.commit()
            return row.id
        except Exception:
            session.rollback()
            logger.warning(
                "error_log_write_failed",
                extra={"component": component},
                exc_info=True,
            )
            return None
        finally:
            session.close()
