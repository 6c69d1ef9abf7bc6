"""
Invoicing Workflows.

State machine for the invoice lifecycle.  ``change_status`` enforces the
transition table, and only lets ``paid`` / ``partially_paid`` be entered by
hand when the recorded payments agree.  Payment application derives status
from the amounts and does not consult the table.
"""

from dataclasses import dataclass

from ledger_kernel.logging_config import get_logger
from ledger_modules.invoicing.models import InvoiceStatus

logger = get_logger("modules.invoicing.workflows")


@dataclass(frozen=True)
class Transition:
    """A valid state transition."""
    from_state: InvoiceStatus
    to_state: InvoiceStatus
    action: str
    posts_entry: bool = False


@dataclass(frozen=True)
class Workflow:
    """A state machine definition."""
    name: str
    description: str
    initial_state: InvoiceStatus
    states: tuple[InvoiceStatus, ...]
    transitions: tuple[Transition, ...]

    def allowed_targets(self, from_state: InvoiceStatus) -> tuple[InvoiceStatus, ...]:
        return tuple(t.to_state for t in self.transitions if t.from_state == from_state)

    def find(self, from_state: InvoiceStatus, to_state: InvoiceStatus) -> Transition | None:
        for t in self.transitions:
            if t.from_state == from_state and t.to_state == to_state:
                return t
        return None

    def is_terminal(self, state: InvoiceStatus) -> bool:
        return not self.allowed_targets(state)


S = InvoiceStatus

# -----------------------------------------------------------------------------
# Invoice Workflow
# -----------------------------------------------------------------------------

INVOICE_WORKFLOW = Workflow(
    name="invoice",
    description="Client invoice lifecycle",
    initial_state=S.DRAFT,
    states=tuple(S),
    transitions=(
        # posts_entry: approval posts the receivable when the caller asks for it
        Transition(S.DRAFT, S.APPROVED, action="approve", posts_entry=True),
        Transition(S.DRAFT, S.SENT, action="send", posts_entry=True),
        Transition(S.DRAFT, S.CANCELED, action="cancel"),
        Transition(S.DRAFT, S.VOID, action="void"),
        Transition(S.SENT, S.APPROVED, action="approve"),
        Transition(S.SENT, S.PAID, action="mark_paid"),
        Transition(S.SENT, S.PARTIALLY_PAID, action="mark_partially_paid"),
        Transition(S.SENT, S.OVERDUE, action="mark_overdue"),
        Transition(S.SENT, S.CANCELED, action="cancel"),
        Transition(S.SENT, S.VOID, action="void"),
        Transition(S.APPROVED, S.PAID, action="mark_paid"),
        Transition(S.APPROVED, S.PARTIALLY_PAID, action="mark_partially_paid"),
        Transition(S.APPROVED, S.OVERDUE, action="mark_overdue"),
        Transition(S.APPROVED, S.CANCELED, action="cancel"),
        Transition(S.APPROVED, S.VOID, action="void"),
        Transition(S.PARTIALLY_PAID, S.PAID, action="mark_paid"),
        Transition(S.PARTIALLY_PAID, S.OVERDUE, action="mark_overdue"),
        Transition(S.PARTIALLY_PAID, S.VOID, action="void"),
        Transition(S.OVERDUE, S.PAID, action="mark_paid"),
        Transition(S.OVERDUE, S.PARTIALLY_PAID, action="mark_partially_paid"),
        Transition(S.OVERDUE, S.VOID, action="void"),
        Transition(S.PAID, S.VOID, action="void"),
        Transition(S.CANCELED, S.DRAFT, action="reopen"),
    ),
)

# States that reverse the invoice's own ledger postings when entered
REVERSING_STATES = frozenset({S.CANCELED, S.VOID})

# States in which payments and line items are frozen
CLOSED_STATES = frozenset({S.CANCELED, S.VOID})

logger.debug(
    "invoice_workflow_registered",
    extra={
        "workflow_name": INVOICE_WORKFLOW.name,
        "state_count": len(INVOICE_WORKFLOW.states),
        "transition_count": len(INVOICE_WORKFLOW.transitions),
        "initial_state": INVOICE_WORKFLOW.initial_state.value,
    },
)
