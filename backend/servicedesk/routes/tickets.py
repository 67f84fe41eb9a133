from __future__ import annotations
from flask import Blueprint, request
from sqlalchemy import or_
from servicedesk.decorators.auth import require_permissions
from servicedesk.errors import InvalidField
from servicedesk.services.conversation import (
    append_message, list_messages, list_status_events, message_json, status_event_json,
)
from servicedesk.services.lifecycle import transition_ticket
from servicedesk.services.media import add_media, delete_media, list_media, media_json
from servicedesk.services.tenancy import (
    current_actor_id, current_tenant_id, load_ticket, tenant_tickets, ticket_model, workflow_for,
)
from servicedesk.services.tickets import create_ticket, ticket_json
from servicedesk.models.history import ConversationMessage
from servicedesk import get_db
from servicedesk.utils.listing import apply_multi_sort, apply_pagination, list_response
from servicedesk.utils.validation import parse_bool, parse_text, require_object, validate_status

tickets_bp = Blueprint('tickets', __name__)


@tickets_bp.get('/<kind>')
@require_permissions('TKT.READ')
def list_tickets(kind: str):
    workflow = workflow_for(kind)
    model = ticket_model(kind)
    q = tenant_tickets(current_tenant_id(), kind)
    status = request.args.get('status')
    if status:
        q = q.filter(model.status == validate_status(status, workflow.statuses))
    search = request.args.get('q')
    if search:
        like = f"%{search}%"
        q = q.filter(or_(model.ticket_number.ilike(like), model.device_type.ilike(like), model.device_model.ilike(like)))
    allowed = {
        'ticket_number': model.ticket_number,
        'status': model.status,
        'created_at': model.created_at,
        'updated_at': model.updated_at,
        'id': model.id
    }
    q = apply_multi_sort(q, request.args.get('sort'), allowed, model.id)
    paged_q, total, limit, offset = apply_pagination(q)
    rows = [ticket_json(t) for t in paged_q.all()]
    return list_response(rows, total, limit, offset)


@tickets_bp.post('/<kind>')
@require_permissions('TKT.MANAGE')
def create(kind: str):
    data = dict(require_object(request.json))
    customer_id = data.pop('customer_id', None)
    if customer_id is None:
        raise InvalidField(description='customer_id required')
    t = create_ticket(kind, current_tenant_id(), customer_id, data, actor_id=current_actor_id())
    return ticket_json(t), 201


@tickets_bp.get('/<kind>/<int:ticket_id>')
@require_permissions('TKT.READ')
def get_ticket(kind: str, ticket_id: int):
    return ticket_json(load_ticket(current_tenant_id(), ticket_id, kind))


@tickets_bp.post('/<kind>/<int:ticket_id>/status')
@require_permissions('TKT.MANAGE')
def change_status(kind: str, ticket_id: int):
    data = require_object(request.json)
    if 'status' not in data:
        raise InvalidField(description='status required')
    t = transition_ticket(
        kind,
        current_tenant_id(),
        ticket_id,
        data.get('status'),
        field_patch=data.get('fields'),
        actor_id=current_actor_id(),
        note=parse_text(data.get('note'), 'note'),
        expected_version=data.get('expected_version'),
    )
    return ticket_json(t)


@tickets_bp.get('/<kind>/<int:ticket_id>/history')
@require_permissions('TKT.READ')
def history(kind: str, ticket_id: int):
    events = list_status_events(current_tenant_id(), ticket_id, kind)
    return {'data': [status_event_json(e) for e in events]}


@tickets_bp.get('/<kind>/<int:ticket_id>/messages')
@require_permissions('TKT.READ')
def messages(kind: str, ticket_id: int):
    rows = list_messages(current_tenant_id(), ticket_id, kind)
    return {'data': [message_json(m) for m in rows]}


@tickets_bp.post('/<kind>/<int:ticket_id>/messages')
@require_permissions('TKT.MANAGE')
def post_message(kind: str, ticket_id: int):
    data = require_object(request.json)
    author_kind = data.get('author_kind', ConversationMessage.AUTHOR_STAFF)
    if author_kind == ConversationMessage.AUTHOR_SYSTEM:
        raise InvalidField(description='system messages are written by the server only')
    ticket = load_ticket(current_tenant_id(), ticket_id, kind)
    msg = append_message(ticket, author_kind, data.get('body'), author_id=current_actor_id())
    get_db().commit()
    return message_json(msg), 201


@tickets_bp.get('/<kind>/<int:ticket_id>/media')
@require_permissions('TKT.READ')
def media(kind: str, ticket_id: int):
    raw = request.args.get('before')
    is_before = parse_bool(raw, 'before') if raw is not None else None
    rows = list_media(current_tenant_id(), ticket_id, kind, is_before=is_before)
    return {'data': [media_json(m) for m in rows]}


@tickets_bp.post('/<kind>/<int:ticket_id>/media')
@require_permissions('TKT.MANAGE')
def attach_media(kind: str, ticket_id: int):
    data = require_object(request.json)
    is_before = data.get('is_before')
    m = add_media(
        current_tenant_id(), ticket_id, data.get('url'), kind,
        media_type=data.get('media_type'),
        is_before=parse_bool(is_before, 'is_before') if is_before is not None else None,
        description=parse_text(data.get('description'), 'description'),
    )
    return media_json(m), 201


@tickets_bp.delete('/<kind>/<int:ticket_id>/media/<int:media_id>')
@require_permissions('TKT.MANAGE')
def remove_media(kind: str, ticket_id: int, media_id: int):
    delete_media(current_tenant_id(), ticket_id, media_id, kind)
    return '', 204
