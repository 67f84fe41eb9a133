from __future__ import annotations
from typing import Optional
from flask_jwt_extended import get_jwt_identity
from sqlalchemy import select
from servicedesk import get_db
from servicedesk.constants.workflows import get_workflow
from servicedesk.errors import CustomerNotFound, TenantNotFound, TicketNotFound
from servicedesk.models.tenant import Customer, User
from servicedesk.models.ticket import TICKET_MODELS, Ticket


def resolve_tenant(actor_id: Optional[int], session=None) -> int:
    """Return the company id the actor works for.

    Unknown, inactive and company-less users all raise TenantNotFound.
    """
    session = session or get_db()
    if actor_id is None:
        raise TenantNotFound()
    user = session.execute(select(User).where(User.id == int(actor_id))).scalar_one_or_none()
    if not user or not user.is_active or user.company_id is None:
        raise TenantNotFound()
    return user.company_id


def current_actor_id() -> int:
    # JWT identity is stored as a string
    return int(get_jwt_identity())


def current_tenant_id() -> int:
    return resolve_tenant(current_actor_id())


def ticket_model(kind: Optional[str]):
    if kind is None:
        return Ticket
    model = TICKET_MODELS.get(kind)
    if model is None:
        raise TicketNotFound()
    return model


def tenant_tickets(tenant_id: int, kind: Optional[str] = None, session=None):
    """Query of tickets visible to a tenant, optionally narrowed to one kind."""
    session = session or get_db()
    model = ticket_model(kind)
    return session.query(model).filter(model.company_id == tenant_id)


def load_ticket(tenant_id: int, ticket_id: int, kind: Optional[str] = None, session=None) -> Ticket:
    """Load a ticket inside a tenant.

    An id that exists under another company (or under another kind) raises the
    same TicketNotFound as an id that does not exist at all.
    """
    session = session or get_db()
    model = ticket_model(kind)
    stmt = (
        select(model)
        .where(model.id == ticket_id, model.company_id == tenant_id)
        .execution_options(populate_existing=True)
    )
    ticket = session.execute(stmt).scalar_one_or_none()
    if ticket is None:
        raise TicketNotFound()
    return ticket


def load_customer(tenant_id: int, customer_id, session=None) -> Customer:
    session = session or get_db()
    try:
        cid = int(customer_id)
    except (TypeError, ValueError):
        raise CustomerNotFound()
    customer = session.execute(
        select(Customer).where(Customer.id == cid, Customer.company_id == tenant_id)
    ).scalar_one_or_none()
    if customer is None:
        raise CustomerNotFound()
    return customer


def workflow_for(kind: str):
    workflow = get_workflow(kind)
    if workflow is None:
        raise TicketNotFound()
    return workflow


__all__ = [
    'resolve_tenant', 'current_actor_id', 'current_tenant_id', 'ticket_model', 'tenant_tickets',
    'load_ticket', 'load_customer', 'workflow_for',
]
