"""Payroll Workflows.

Lifecycle of one employee's payroll entry for one period.  An entry may be
adjusted (additions, deductions, recalculation) while generated; once paid
it is final.
"""

from backoffice_kernel.domain.workflow import Guard, Transition, Workflow
from backoffice_kernel.logging_config import get_logger

logger = get_logger("modules.payroll.workflows")

PERIOD_NOT_GENERATED = Guard(
    name="period_not_generated",
    description="No payroll entry exists yet for the employee in this period",
)

PAYROLL_ENTRY_WORKFLOW = Workflow(
    name="payroll_entry",
    description="Monthly payroll entry lifecycle",
    initial_state="not_generated",
    states=("not_generated", "generated", "paid"),
    transitions=(
        Transition(
            "not_generated", "generated", action="generate",
            guard=PERIOD_NOT_GENERATED, posts_entry=True,
        ),
        Transition("generated", "generated", action="adjust", posts_entry=True),
        Transition("generated", "paid", action="pay", posts_entry=True),
    ),
    terminal_states=("paid",),
)

logger.debug(
    "payroll_entry_workflow_registered",
    extra={
        "workflow_name": PAYROLL_ENTRY_WORKFLOW.name,
        "state_count": len(PAYROLL_ENTRY_WORKFLOW.states),
        "transition_count": len(PAYROLL_ENTRY_WORKFLOW.transitions),
    },
)
