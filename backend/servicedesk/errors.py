from __future__ import annotations
"""Domain error taxonomy.

Everything a caller can observe is an ``HTTPException`` subclass so the
unified handler in ``create_app`` renders it with the standard error shape.
Lookup misses are always 404 regardless of whether the row exists under
another company: a foreign id and an unknown id are indistinguishable.
"""
from werkzeug.exceptions import BadRequest, Conflict, NotFound, ServiceUnavailable


class TenantNotFound(NotFound):
    description = 'Company not found'


class TicketNotFound(NotFound):
    description = 'Ticket not found'


class CustomerNotFound(NotFound):
    description = 'Customer not found'


class MediaNotFound(NotFound):
    description = 'Media not found'


class InvalidStatus(BadRequest):
    description = 'status invalid'


class InvalidField(BadRequest):
    description = 'field invalid'


class InvalidTransition(Conflict):
    description = 'status transition not allowed'


class ConcurrentUpdate(Conflict):
    description = 'Ticket was modified concurrently'


class PersistenceFailure(ServiceUnavailable):
    description = 'Ticket could not be saved'


class NotificationFailure(Exception):
    """Raised inside the dispatch step; never escapes the lifecycle engine."""

    def __init__(self, recipient: str, reason: str):
        super().__init__(f'{recipient}: {reason}')
        self.recipient = recipient
        self.reason = reason


__all__ = [
    'TenantNotFound', 'TicketNotFound', 'CustomerNotFound', 'MediaNotFound',
    'InvalidStatus', 'InvalidField', 'InvalidTransition', 'ConcurrentUpdate',
    'PersistenceFailure', 'NotificationFailure',
]
