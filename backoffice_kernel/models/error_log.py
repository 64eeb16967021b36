"""
Module: backoffice_kernel.models.error_log
Responsibility: ORM persistence for operational error records written by the
    best-effort ErrorLogSink.
Architecture position: Kernel > Models.  May import from db/base.py only.

Rows are written in a session independent of the failing transaction so
that a rollback of the business operation does not erase the record of
why it failed.
"""

from sqlalchemy import JSON, Boolean, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from backoffice_kernel.db.base import TrackedBase


class ErrorLogModel(TrackedBase):
    """A recorded operational failure."""

    __tablename__ = "error_logs"

    __table_args__ = (
        Index("idx_error_logs_component", "component"),
        Index("idx_error_logs_resolved", "resolved"),
    )

    message: Mapped[str] = mapped_column(Text, nullable=False)
    stack: Mapped[str | None] = mapped_column(Text, nullable=True)
    component: Mapped[str] = mapped_column(String(100), nullable=False)
    severity: Mapped[str] = mapped_column(String(20), default="error", nullable=False)
    context: Mapped[dict | None] = mapped_column(JSON, nullable=True)
    resolved: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
