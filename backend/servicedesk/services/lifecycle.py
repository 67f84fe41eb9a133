from __future__ import annotations
"""Ticket lifecycle engine.

One generic implementation for every ticket kind; the per-kind differences
come from ``constants.workflows``. A transition runs in two phases:

1. The status and any accompanying field changes are committed. This is the
   only step that can fail the call.
2. Best-effort follow-ups: the StatusEvent + "Status changed" system message,
   then the customer email and a system message recording its outcome. Each
   follow-up commits on its own; a failure there is logged and never rolls
   back phase 1 or reaches the caller.

Config switches (see create_app):
  LIFECYCLE_ENFORCE_TRANSITIONS         reject targets outside the workflow graph
  LIFECYCLE_SUPPRESS_NOOP_SIDE_EFFECTS  same-status calls append nothing
  NOTIFY_TIMEOUT_SECONDS                caller-side bound on the dispatch
"""
from typing import Any, Mapping, Optional
from flask import current_app
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm.exc import StaleDataError
from servicedesk import config_flag, get_db
from servicedesk.constants.workflows import WorkflowDefinition
from servicedesk.errors import ConcurrentUpdate, InvalidField, NotificationFailure, PersistenceFailure
from servicedesk.models.history import ConversationMessage
from servicedesk.models.ticket import Ticket, utcnow
from servicedesk.services.conversation import append_system_message, record_status_event
from servicedesk.services.dispatch import NotificationDispatcher, NullDispatcher, send_with_timeout
from servicedesk.services.notifications import TicketSnapshot, build_from_snapshot
from servicedesk.services.tenancy import load_ticket, workflow_for
from servicedesk.utils.fsm import TransitionValidator
from servicedesk.utils.validation import coerce_patch, validate_status


def transition_ticket(
    kind: str,
    tenant_id: int,
    ticket_id: int,
    new_status: str,
    field_patch: Optional[Mapping[str, Any]] = None,
    actor_id: Optional[int] = None,
    note: Optional[str] = None,
    expected_version: Optional[int] = None,
    dispatcher: Optional[NotificationDispatcher] = None,
    session=None,
) -> Ticket:
    """Apply a status change (plus optional field patch) to a tenant's ticket.

    Raises TicketNotFound, InvalidStatus, InvalidField, InvalidTransition,
    ConcurrentUpdate or PersistenceFailure; nothing raised after the ticket row
    is committed.
    """
    session = session or get_db()
    config = current_app.config
    workflow = workflow_for(kind)
    ticket = load_ticket(tenant_id, ticket_id, kind, session=session)
    validate_status(new_status, workflow.statuses)
    patch = coerce_patch(field_patch, workflow.patchable_fields)
    if expected_version is not None:
        try:
            expected = int(expected_version)
        except (TypeError, ValueError):
            raise InvalidField(description='expected_version invalid')
        if expected != ticket.version:
            raise ConcurrentUpdate(description=f'Ticket is at version {ticket.version}, expected {expected}')
    if config_flag(config.get('LIFECYCLE_ENFORCE_TRANSITIONS'), False):
        TransitionValidator(workflow.transitions).assert_can_transition(ticket.status, new_status)

    previous_status = ticket.status
    changed = previous_status != new_status

    _persist(session, ticket, new_status, patch)

    try:
        snapshot = TicketSnapshot.from_ticket(workflow, ticket, new_status)
    except Exception:
        current_app.logger.exception('Reading %s ticket %s after commit failed; follow-ups skipped', kind, ticket_id)
        return ticket
    if changed or not config_flag(config.get('LIFECYCLE_SUPPRESS_NOOP_SIDE_EFFECTS'), True):
        _record_change(session, workflow, snapshot, previous_status, new_status, note, actor_id)
    if changed:
        _notify_customer(session, workflow, snapshot, new_status, dispatcher)
    return ticket


def _persist(session, ticket: Ticket, new_status: str, patch: Mapping[str, Any]):
    kind, ticket_id = ticket.kind, ticket.id
    for name, value in patch.items():
        setattr(ticket, name, value)
    ticket.status = new_status
    ticket.updated_at = utcnow()
    try:
        session.commit()
    except StaleDataError:
        session.rollback()
        raise ConcurrentUpdate()
    except SQLAlchemyError:
        session.rollback()
        current_app.logger.exception('Persisting %s ticket %s failed', kind, ticket_id)
        raise PersistenceFailure()


def _record_change(session, workflow: WorkflowDefinition, snapshot: TicketSnapshot, previous_status: str,
                   new_status: str, note: Optional[str], actor_id: Optional[int]):
    try:
        record_status_event(
            snapshot, previous_status, new_status,
            note=note or f"Status changed to {workflow.label(new_status)}",
            actor_id=actor_id, session=session,
        )
        append_system_message(
            snapshot, f"Status changed from {previous_status} to {new_status}",
            ConversationMessage.TYPE_STATUS_CHANGE, session=session,
        )
        session.commit()
    except Exception:
        session.rollback()
        current_app.logger.exception('Recording status change for %s ticket %s failed', snapshot.kind, snapshot.id)


def _action_url(kind: str, ticket_id: int) -> Optional[str]:
    base = (current_app.config.get('PUBLIC_BASE_URL') or '').rstrip('/')
    if not base:
        return None
    return f"{base}/dashboard/{kind}/{ticket_id}"


def _notify_customer(session, workflow: WorkflowDefinition, snapshot: TicketSnapshot, new_status: str,
                     dispatcher: Optional[NotificationDispatcher]):
    email = snapshot.customer_email
    if not email:
        current_app.logger.info('No customer email on %s ticket %s; notification skipped', snapshot.kind, snapshot.id)
        return
    try:
        dispatcher = dispatcher or current_app.extensions.get('notification_dispatcher') or NullDispatcher()
        timeout = float(current_app.config.get('NOTIFY_TIMEOUT_SECONDS', 10))
        notification = build_from_snapshot(workflow, snapshot, new_status, action_url=_action_url(snapshot.kind, snapshot.id))
        result = send_with_timeout(dispatcher, timeout, email, notification.subject, notification.html,
                                   snapshot.company_name or None)
        if not result.success:
            raise NotificationFailure(email, result.error or 'unknown error')
    except NotificationFailure as e:
        current_app.logger.warning('Notification for %s ticket %s not sent to %s: %s', snapshot.kind, snapshot.id, email, e.reason)
        _record_outcome(session, snapshot, f"Email notification to {email} could not be sent")
        return
    except Exception:
        current_app.logger.exception('Notifying customer of %s ticket %s failed', snapshot.kind, snapshot.id)
        _record_outcome(session, snapshot, f"Email notification to {email} could not be sent")
        return
    current_app.logger.info('Notification %s sent for %s ticket %s', result.id, snapshot.kind, snapshot.id)
    _record_outcome(session, snapshot, f"Email notification sent to {email}")


def _record_outcome(session, snapshot: TicketSnapshot, body: str):
    try:
        append_system_message(snapshot, body, ConversationMessage.TYPE_EMAIL, session=session)
        session.commit()
    except Exception:
        session.rollback()
        current_app.logger.exception('Recording notification outcome for ticket %s failed', snapshot.id)


__all__ = ['transition_ticket']
