"""
Shared helpers for module service flows.

Used by backoffice_modules/*/service.py to keep the transaction boundary
and workflow checks identical across services.

Architecture: Modules layer. Imports only from backoffice_kernel.
"""

from __future__ import annotations

from collections.abc import Iterator
from decimal import Decimal
from contextlib import contextmanager
from typing import Any
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from backoffice_kernel.domain.values import ZERO, round_money
from backoffice_kernel.domain.workflow import Transition, Workflow
from backoffice_kernel.exceptions import InvalidAmountError, InvalidTransitionError
from backoffice_kernel.logging_config import get_logger
from backoffice_kernel.services.error_log_service import ErrorLogSink

logger = get_logger("modules.posting_helpers")


@contextmanager
def owned_transaction(
    session: Session,
    operation: str,
    component: str,
    error_sink: ErrorLogSink | None = None,
    context: dict[str, Any] | None = None,
) -> Iterator[Session]:
    """
    Run a service operation as one transaction.

    Commits on normal exit.  On any exception the session is rolled back
    and the exception re-raised unchanged; database errors are also
    recorded to ``error_sink``.
    """
    try:
        yield session
        session.commit()
    except SQLAlchemyError as exc:
        session.rollback()
        logger.error(
            "operation_failed",
            extra={"operation": operation, "component": component, "error": str(exc)},
        )
        if error_sink is not None:
            error_sink.record(
                f"{operation} failed: {exc}",
                component=component,
                exc=exc,
                context={"operation": operation, **(context or {})},
            )
        raise
    except Exception:
        session.rollback()
        logger.info(
            "operation_rolled_back",
            extra={"operation": operation, "component": component},
        )
        raise


def require_transition(
    workflow: Workflow,
    entity_type: str,
    entity_id: UUID,
    current_state: str,
    action: str,
) -> Transition:
    """Return the workflow transition or raise InvalidTransitionError."""
    transition = workflow.find_transition(current_state, action)
    if transition is None:
        raise InvalidTransitionError(
            entity_type,
            str(entity_id),
            current_state,
            action,
            allowed_actions=workflow.actions_from(current_state),
        )
    return transition


def positive_amount(field: str, raw: Any) -> Decimal:
    """Parse a user-supplied amount, rounded to cents, that must be > 0.

    Unparseable, non-finite and non-positive values all raise
    InvalidAmountError.
    """
    try:
        value = round_money(raw)
    except ValueError as exc:
        raise InvalidAmountError(field, raw) from exc
    if value <= ZERO:
        raise InvalidAmountError(field, value)
    return value
