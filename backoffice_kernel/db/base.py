"""
Declarative base for every backoffice table (``backoffice_kernel.db.base``).

Column conventions come from ``Base.type_annotation_map``, so a model only
writes ``Mapped[Decimal]`` or ``Mapped[UUID]`` and gets the right column:

    Decimal   -> NUMERIC(38, 9)        money, quantities, rates
    UUID      -> VARCHAR(36)           same text on PostgreSQL and SQLite
    datetime  -> TIMESTAMP WITH TZ

Rows that users create (everything except ``error_logs``) extend
``TrackedBase`` and carry who created and last changed them.
"""

from datetime import datetime
from decimal import Decimal
from typing import Any, ClassVar
from uuid import UUID, uuid4

from sqlalchemy import DateTime, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator


class UUIDString(TypeDecorator):
    """UUIDs persisted as their canonical 36-character text."""

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value: UUID | str | None, dialect) -> str | None:
        if value is None:
            return None
        return str(value if isinstance(value, UUID) else UUID(value))

    def process_result_value(self, value: str | None, dialect) -> UUID | None:
        return None if value is None else UUID(value)


class Base(DeclarativeBase):
    type_annotation_map: ClassVar[dict[Any, Any]] = {
        Decimal: Numeric(38, 9),
        UUID: UUIDString(),
        datetime: DateTime(timezone=True),
    }

    id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)


class TrackedBase(Base):
    """Adds creation/update stamps; ``created_by_id`` is mandatory."""

    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime | None] = mapped_column(
        server_default=func.now(), onupdate=func.now(),
    )
    created_by_id: Mapped[UUID] = mapped_column(nullable=False)
    updated_by_id: Mapped[UUID | None] = mapped_column()
