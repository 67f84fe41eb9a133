"""Workflow definitions for the three ticket kinds.

A ``WorkflowDefinition`` carries everything that differs between repair,
buyback and refurbishing: the status enum, the customer-facing message per
status, the fields a transition may update alongside the status and the
(optional) allowed-transition graph. The lifecycle engine and the
notification builder are written once against this structure.

Message templates may reference ``{amount}`` (already formatted, e.g.
``$150.00``) and ``{grade}``. A ``StatusMessage.amount_suffix`` is appended
only when the ticket has a value in ``amount_field``.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, FrozenSet, Iterable, Optional, Set, Tuple

# Field coercion kinds understood by utils.validation.coerce_field
FIELD_TEXT = 'text'
FIELD_MONEY = 'money'
FIELD_GRADE = 'grade'
FIELD_BOOL = 'bool'

SCREEN_GRADES = ('A', 'B', 'C', 'D', 'F')


@dataclass(frozen=True)
class StatusMessage:
    text: str
    amount_field: Optional[str] = None
    amount_suffix: Optional[str] = None


@dataclass(frozen=True)
class WorkflowDefinition:
    kind: str
    title: str
    ticket_prefix: str
    statuses: Tuple[str, ...]
    terminal: FrozenSet[str]
    transitions: Dict[str, Set[str]]
    patchable_fields: Dict[str, str]
    messages: Dict[str, StatusMessage] = field(default_factory=dict)
    grade_field: Optional[str] = None
    action_text: str = 'View Ticket Details'

    @property
    def initial(self) -> str:
        return self.statuses[0]

    def has_status(self, status: str) -> bool:
        return status in self.statuses

    def label(self, status: str) -> str:
        return ' '.join(word.capitalize() for word in str(status).split('_'))

    def is_terminal(self, status: str) -> bool:
        return status in self.terminal


def _graph(chain: Iterable[str], exits: Iterable[str], terminal: Iterable[str]) -> Dict[str, Set[str]]:
    """Happy-path chain plus side exits reachable from every non-terminal status."""
    chain = list(chain)
    exits = list(exits)
    terminal = set(terminal)
    graph: Dict[str, Set[str]] = {}
    for idx, status in enumerate(chain):
        if status in terminal:
            graph[status] = set()
            continue
        nxt = {chain[idx + 1]} if idx + 1 < len(chain) else set()
        graph[status] = nxt | set(exits)
    for status in exits:
        graph.setdefault(status, set())
    return graph


_REPAIR_CHAIN = ('submitted', 'received', 'diagnosed', 'in_progress', 'parts_ordered',
                 'ready_for_testing', 'completed', 'shipped')
_REPAIR_TERMINAL = frozenset({'shipped', 'cancelled'})

REPAIR = WorkflowDefinition(
    kind='repair',
    title='Repair',
    ticket_prefix='REP',
    statuses=_REPAIR_CHAIN + ('cancelled',),
    terminal=_REPAIR_TERMINAL,
    transitions=_graph(_REPAIR_CHAIN, ['cancelled'], _REPAIR_TERMINAL),
    patchable_fields={
        'diagnosis': FIELD_TEXT,
        'technician_notes': FIELD_TEXT,
        'issue_description': FIELD_TEXT,
        'notes': FIELD_TEXT,
        'estimated_cost': FIELD_MONEY,
        'actual_cost': FIELD_MONEY,
        'is_urgent': FIELD_BOOL,
    },
    messages={
        'received': StatusMessage('We have received your device for repair.'),
        'diagnosed': StatusMessage('We have diagnosed your device.', 'estimated_cost', ' Estimated cost: {amount}'),
        'in_progress': StatusMessage('Your device repair is now in progress.'),
        'parts_ordered': StatusMessage('We have ordered the parts needed for your repair.'),
        'ready_for_testing': StatusMessage('Your device has been repaired and is now being tested.'),
        'completed': StatusMessage('Your device repair has been completed.', 'actual_cost', ' Total cost: {amount}'),
        'shipped': StatusMessage('Your repaired device has been shipped back to you.'),
        'cancelled': StatusMessage('Your repair has been cancelled.'),
    },
    action_text='View Repair Details',
)

_BUYBACK_CHAIN = ('submitted', 'received', 'evaluated', 'pending_payment', 'completed')
_BUYBACK_TERMINAL = frozenset({'completed', 'rejected', 'returned'})

BUYBACK = WorkflowDefinition(
    kind='buyback',
    title='Buyback',
    ticket_prefix='BUY',
    statuses=_BUYBACK_CHAIN + ('rejected', 'returned'),
    terminal=_BUYBACK_TERMINAL,
    transitions=_graph(_BUYBACK_CHAIN, ['rejected', 'returned'], _BUYBACK_TERMINAL),
    patchable_fields={
        'offered_amount': FIELD_MONEY,
        'condition': FIELD_TEXT,
        'notes': FIELD_TEXT,
    },
    messages={
        'received': StatusMessage('We have received your device for buyback evaluation.'),
        'evaluated': StatusMessage('We have evaluated your device.', 'offered_amount', ' Offered amount: {amount}'),
        'pending_payment': StatusMessage('Your buyback is pending payment.', 'offered_amount', ' Amount to be paid: {amount}'),
        'completed': StatusMessage('Your buyback has been completed and payment has been processed.'),
        'rejected': StatusMessage('Unfortunately, we are unable to proceed with the buyback of your device.'),
        'returned': StatusMessage('Your device has been returned to you.'),
    },
    action_text='View Buyback Details',
)

_REFURB_CHAIN = ('submitted', 'received', 'graded', 'in_progress', 'completed', 'shipped')
_REFURB_TERMINAL = frozenset({'shipped', 'cancelled'})

REFURBISHING = WorkflowDefinition(
    kind='refurbishing',
    title='Refurbishing',
    ticket_prefix='REF',
    statuses=_REFURB_CHAIN + ('cancelled',),
    terminal=_REFURB_TERMINAL,
    transitions=_graph(_REFURB_CHAIN, ['cancelled'], _REFURB_TERMINAL),
    patchable_fields={
        'screen_condition_before': FIELD_GRADE,
        'screen_condition_after': FIELD_GRADE,
        'refurbishing_cost': FIELD_MONEY,
        'sale_price': FIELD_MONEY,
        'notes': FIELD_TEXT,
    },
    messages={
        'received': StatusMessage('We have received your device for refurbishing.'),
        'graded': StatusMessage('We have graded your device screen as {grade}.'),
        'in_progress': StatusMessage('Your device refurbishing is now in progress.'),
        'completed': StatusMessage('Your device refurbishing has been completed.'),
        'shipped': StatusMessage('Your refurbished device has been shipped back to you.'),
    },
    grade_field='screen_condition_before',
)

WORKFLOWS: Dict[str, WorkflowDefinition] = {w.kind: w for w in (REPAIR, BUYBACK, REFURBISHING)}
TICKET_KINDS = tuple(WORKFLOWS)

# Fields accepted at creation time in addition to the patchable ones
CREATE_FIELDS = {
    'device_type': FIELD_TEXT,
    'device_model': FIELD_TEXT,
    'serial_number': FIELD_TEXT,
}


def get_workflow(kind: str) -> Optional[WorkflowDefinition]:
    return WORKFLOWS.get(kind)


__all__ = [
    'WorkflowDefinition', 'StatusMessage', 'WORKFLOWS', 'TICKET_KINDS', 'REPAIR', 'BUYBACK',
    'REFURBISHING', 'SCREEN_GRADES', 'CREATE_FIELDS', 'get_workflow',
    'FIELD_TEXT', 'FIELD_MONEY', 'FIELD_GRADE', 'FIELD_BOOL',
]
