from __future__ import annotations
"""Customer notification content.

``build_status_notification`` is a pure function of its arguments: no database,
no network, no clock unless ``year`` is omitted. Every kind has its own message
table in ``constants.workflows``; statuses without an entry (``submitted``,
unknown values) get the generic "status has been updated" sentence.
"""
import os
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Optional
from jinja2 import Environment, FileSystemLoader, select_autoescape
from servicedesk.constants.workflows import WorkflowDefinition
from servicedesk.utils.validation import format_money

_TEMPLATE_DIR = os.path.join(os.path.dirname(__file__), '..', 'templates')
_env = Environment(
    loader=FileSystemLoader(os.path.abspath(_TEMPLATE_DIR)),
    autoescape=select_autoescape(['html']),
)

STATUS_TEMPLATE = 'email/status_update.html'
UNKNOWN_GRADE = 'Grade Unknown'


@dataclass(frozen=True)
class Notification:
    subject: str
    html: str
    message: str
    status_label: str


def status_message(workflow: WorkflowDefinition, status: str, amount: Optional[Decimal] = None,
                   grade: Optional[str] = None) -> str:
    entry = workflow.messages.get(status)
    if entry is None:
        label = workflow.label(status) if workflow.has_status(status) else status
        return f"Your {workflow.kind} ticket status has been updated to {label}."
    text = entry.text.format(grade=grade or UNKNOWN_GRADE)
    if entry.amount_suffix and amount:
        text += entry.amount_suffix.format(amount=format_money(amount))
    return text


def build_status_notification(
    workflow: WorkflowDefinition,
    status: str,
    company_name: str,
    customer_name: str,
    ticket_number: str,
    device_info: str,
    company_logo: Optional[str] = None,
    amount: Optional[Decimal] = None,
    grade: Optional[str] = None,
    action_url: Optional[str] = None,
    year: Optional[int] = None,
) -> Notification:
    label = workflow.label(status) if workflow.has_status(status) else status
    message = status_message(workflow, status, amount=amount, grade=grade)
    html = _env.get_template(STATUS_TEMPLATE).render(
        company_name=company_name,
        company_logo=company_logo,
        customer_name=customer_name,
        ticket_number=ticket_number,
        device_info=device_info,
        status_label=label,
        status_class=str(status).lower().replace('_', '-'),
        message=message,
        action_url=action_url,
        action_text=workflow.action_text,
        year=year or date.today().year,
    )
    return Notification(
        subject=f"{workflow.title} Update: {ticket_number}",
        html=html,
        message=message,
        status_label=label,
    )


@dataclass(frozen=True)
class TicketSnapshot:
    """Plain copy of what the follow-up steps of a transition need.

    Taken once, right after the status commit, so recording history and
    notifying the customer never have to read the (possibly expired) ORM
    object again.
    """
    id: int
    kind: str
    ticket_number: str
    device_info: str
    customer_email: Optional[str]
    customer_name: str
    company_name: str
    company_logo: Optional[str]
    amount: Optional[Decimal]
    grade: Optional[str]

    @classmethod
    def from_ticket(cls, workflow: WorkflowDefinition, ticket, status: str) -> 'TicketSnapshot':
        customer = ticket.customer
        company = ticket.company
        return cls(
            id=ticket.id,
            kind=ticket.kind,
            ticket_number=ticket.ticket_number,
            device_info=ticket.device_info,
            customer_email=(customer.email or None) if customer is not None else None,
            customer_name=customer.full_name if customer is not None else '',
            company_name=company.name if company is not None else '',
            company_logo=company.logo_url if company is not None else None,
            amount=notification_amount(workflow, ticket, status),
            grade=notification_grade(workflow, ticket),
        )


def notification_amount(workflow: WorkflowDefinition, ticket, status: str) -> Optional[Decimal]:
    entry = workflow.messages.get(status)
    if entry is None or not entry.amount_field:
        return None
    return getattr(ticket, entry.amount_field, None)


def notification_grade(workflow: WorkflowDefinition, ticket) -> Optional[str]:
    if not workflow.grade_field:
        return None
    return getattr(ticket, workflow.grade_field, None)


def build_from_snapshot(workflow: WorkflowDefinition, snapshot: TicketSnapshot, status: str,
                        action_url: Optional[str] = None) -> Notification:
    return build_status_notification(
        workflow,
        status,
        company_name=snapshot.company_name,
        company_logo=snapshot.company_logo,
        customer_name=snapshot.customer_name,
        ticket_number=snapshot.ticket_number,
        device_info=snapshot.device_info,
        amount=snapshot.amount,
        grade=snapshot.grade,
        action_url=action_url,
    )


__all__ = [
    'Notification', 'TicketSnapshot', 'status_message', 'build_status_notification', 'build_from_snapshot',
    'notification_amount', 'notification_grade',
]
