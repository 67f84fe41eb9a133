from __future__ import annotations
from decimal import Decimal
from typing import Any, Mapping, Optional
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from servicedesk import get_db
from servicedesk.constants.workflows import CREATE_FIELDS
from servicedesk.errors import InvalidField, PersistenceFailure
from servicedesk.models.ticket import Ticket
from servicedesk.services.conversation import record_status_event
from servicedesk.services.tenancy import load_customer, ticket_model, workflow_for
from servicedesk.utils.validation import coerce_patch

NUMBER_ATTEMPTS = 5


def next_ticket_number(session, tenant_id: int, kind: str, offset: int = 0) -> str:
    """Per-company, per-kind sequence rendered as e.g. BUY-000042."""
    workflow = workflow_for(kind)
    count = session.query(func.count(Ticket.id)).filter(Ticket.company_id == tenant_id, Ticket.kind == kind).scalar() or 0
    return f"{workflow.ticket_prefix}-{count + 1 + offset:06d}"


def create_ticket(kind: str, tenant_id: int, customer_id, fields: Optional[Mapping[str, Any]] = None,
                  actor_id: Optional[int] = None, session=None) -> Ticket:
    """Create a ticket in the workflow's initial status for a customer of the same company."""
    session = session or get_db()
    workflow = workflow_for(kind)
    customer = load_customer(tenant_id, customer_id, session=session)
    values = coerce_patch(fields, {**CREATE_FIELDS, **workflow.patchable_fields})
    if not values.get('device_type'):
        raise InvalidField(description='device_type required')
    model = ticket_model(kind)
    for attempt in range(NUMBER_ATTEMPTS):
        ticket = model(
            company_id=tenant_id,
            customer_id=customer.id,
            status=workflow.initial,
            created_by=actor_id,
            ticket_number=next_ticket_number(session, tenant_id, kind, offset=attempt),
            **values,
        )
        session.add(ticket)
        try:
            session.flush()
        except IntegrityError:
            # another request took this number; retry with the next one
            session.rollback()
            continue
        record_status_event(ticket, None, workflow.initial, note='Ticket created', actor_id=actor_id, session=session)
        session.commit()
        return ticket
    raise PersistenceFailure(description='Could not allocate a ticket number')


def _json_value(value):
    if isinstance(value, Decimal):
        return str(value)
    return value


def ticket_json(t: Ticket):
    workflow = workflow_for(t.kind)
    body = {
        'id': t.id,
        'kind': t.kind,
        'company_id': t.company_id,
        'customer_id': t.customer_id,
        'ticket_number': t.ticket_number,
        'device_type': t.device_type,
        'device_model': t.device_model,
        'serial_number': t.serial_number,
        'status': t.status,
        'status_label': workflow.label(t.status),
        'version': t.version,
        'created_at': t.created_at.isoformat() if t.created_at else None,
        'updated_at': t.updated_at.isoformat() if t.updated_at else None,
    }
    for name in workflow.patchable_fields:
        body[name] = _json_value(getattr(t, name, None))
    if t.customer is not None:
        body['customer'] = {
            'id': t.customer.id,
            'name': t.customer.full_name,
            'email': t.customer.email,
        }
    return body
