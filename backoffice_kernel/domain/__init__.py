"""Pure domain values for the backoffice kernel (zero I/O)."""

from backoffice_kernel.domain.clock import Clock, DeterministicClock, SystemClock
from backoffice_kernel.domain.gl_lines import (
    CreditNoteGLLine,
    EntryType,
    GLLine,
    GLLineFields,
    GLStatus,
    PaymentGLLine,
    PayrollGLLine,
    ReferenceType,
)
from backoffice_kernel.domain.workflow import Guard, Transition, Workflow

__all__ = [
    "Clock",
    "CreditNoteGLLine",
    "DeterministicClock",
    "EntryType",
    "GLLine",
    "GLLineFields",
    "GLStatus",
    "Guard",
    "PaymentGLLine",
    "PayrollGLLine",
    "ReferenceType",
    "SystemClock",
    "Transition",
    "Workflow",
]
