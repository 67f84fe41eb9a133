from __future__ import annotations
from typing import List, Optional
from servicedesk import get_db
from servicedesk.errors import InvalidField
from servicedesk.models.history import ConversationMessage, StatusEvent
from servicedesk.services.tenancy import load_ticket


def append_message(ticket, author_kind: str, body: str, author_id: Optional[int] = None,
                   message_type: str = ConversationMessage.TYPE_MESSAGE, session=None) -> ConversationMessage:
    """Add a message to the ticket's conversation within the current DB session.

    No commit here; caller's transaction boundary controls durability.
    """
    session = session or get_db()
    if author_kind not in ConversationMessage.ALL_AUTHOR_KINDS:
        raise InvalidField(description='author_kind invalid')
    if message_type not in ConversationMessage.ALL_TYPES:
        raise InvalidField(description='message_type invalid')
    if not isinstance(body, str) or not body.strip():
        raise InvalidField(description='body required')
    msg = ConversationMessage(
        ticket_id=ticket.id,
        author_kind=author_kind,
        author_id=None if author_kind == ConversationMessage.AUTHOR_SYSTEM else author_id,
        body=body.strip(),
        message_type=message_type,
    )
    session.add(msg)
    return msg


def append_system_message(ticket, body: str, message_type: str, session=None) -> ConversationMessage:
    return append_message(ticket, ConversationMessage.AUTHOR_SYSTEM, body, message_type=message_type, session=session)


def list_messages(tenant_id: int, ticket_id: int, kind: Optional[str] = None, session=None) -> List[ConversationMessage]:
    """Messages for one ticket, oldest first."""
    session = session or get_db()
    ticket = load_ticket(tenant_id, ticket_id, kind, session=session)
    return (
        session.query(ConversationMessage)
        .filter(ConversationMessage.ticket_id == ticket.id)
        .order_by(ConversationMessage.created_at.asc(), ConversationMessage.id.asc())
        .all()
    )


def record_status_event(ticket, previous_status: Optional[str], new_status: str, note: Optional[str] = None,
                        actor_id: Optional[int] = None, session=None) -> StatusEvent:
    session = session or get_db()
    event = StatusEvent(
        ticket_id=ticket.id,
        kind=ticket.kind,
        previous_status=previous_status,
        new_status=new_status,
        note=note,
        actor_id=actor_id,
    )
    session.add(event)
    return event


def list_status_events(tenant_id: int, ticket_id: int, kind: Optional[str] = None, session=None) -> List[StatusEvent]:
    session = session or get_db()
    ticket = load_ticket(tenant_id, ticket_id, kind, session=session)
    return (
        session.query(StatusEvent)
        .filter(StatusEvent.kind == ticket.kind, StatusEvent.ticket_id == ticket.id)
        .order_by(StatusEvent.created_at.asc(), StatusEvent.id.asc())
        .all()
    )


def message_json(m: ConversationMessage):
    return {
        'id': m.id,
        'ticket_id': m.ticket_id,
        'author_kind': m.author_kind,
        'author_id': m.author_id,
        'body': m.body,
        'message_type': m.message_type,
        'created_at': m.created_at.isoformat() if m.created_at else None,
    }


def status_event_json(e: StatusEvent):
    return {
        'id': e.id,
        'ticket_id': e.ticket_id,
        'kind': e.kind,
        'previous_status': e.previous_status,
        'new_status': e.new_status,
        'note': e.note,
        'actor_id': e.actor_id,
        'created_at': e.created_at.isoformat() if e.created_at else None,
    }
