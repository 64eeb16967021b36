"""Accounts Receivable Workflows.

Credit note lifecycle.  Invoice status is derived from payments rather
than driven by actions, see ``derive_invoice_status``.
"""

from backoffice_kernel.domain.workflow import Transition, Workflow
from backoffice_kernel.logging_config import get_logger

logger = get_logger("modules.ar.workflows")

CREDIT_NOTE_WORKFLOW = Workflow(
    name="credit_note",
    description="Sales credit note lifecycle",
    initial_state="draft",
    states=("draft", "issued", "cancelled"),
    transitions=(
        Transition("draft", "issued", action="issue", posts_entry=True),
        Transition("draft", "cancelled", action="cancel"),
    ),
    terminal_states=("issued", "cancelled"),
)

logger.debug(
    "credit_note_workflow_registered",
    extra={
        "workflow_name": CREDIT_NOTE_WORKFLOW.name,
        "state_count": len(CREDIT_NOTE_WORKFLOW.states),
        "transition_count": len(CREDIT_NOTE_WORKFLOW.transitions),
    },
)
