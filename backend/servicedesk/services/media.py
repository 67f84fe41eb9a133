from __future__ import annotations
"""Media references attached to tickets.

Files live in an external blob store; only the URL and a little metadata are
recorded here. The lifecycle engine reads these rows and never mutates them.
"""
import os
from typing import List, Optional
from urllib.parse import urlparse
from sqlalchemy import select
from servicedesk import get_db
from servicedesk.errors import InvalidField, MediaNotFound
from servicedesk.models.media import TicketMedia
from servicedesk.services.tenancy import load_ticket

VIDEO_EXTENSIONS = {'.mp4', '.mov', '.webm', '.avi', '.mkv', '.m4v'}


def infer_media_type(url: str) -> str:
    ext = os.path.splitext(urlparse(url).path)[1].lower()
    return TicketMedia.TYPE_VIDEO if ext in VIDEO_EXTENSIONS else TicketMedia.TYPE_IMAGE


def list_media(tenant_id: int, ticket_id: int, kind: Optional[str] = None, is_before: Optional[bool] = None,
               session=None) -> List[TicketMedia]:
    session = session or get_db()
    ticket = load_ticket(tenant_id, ticket_id, kind, session=session)
    q = session.query(TicketMedia).filter(TicketMedia.ticket_id == ticket.id)
    if is_before is not None:
        q = q.filter(TicketMedia.is_before == is_before)
    return q.order_by(TicketMedia.created_at.asc(), TicketMedia.id.asc()).all()


def add_media(tenant_id: int, ticket_id: int, url: str, kind: Optional[str] = None, media_type: Optional[str] = None,
              is_before: Optional[bool] = None, description: Optional[str] = None, session=None) -> TicketMedia:
    session = session or get_db()
    ticket = load_ticket(tenant_id, ticket_id, kind, session=session)
    if not isinstance(url, str) or not url.strip():
        raise InvalidField(description='url required')
    url = url.strip()
    media_type = media_type or infer_media_type(url)
    if media_type not in TicketMedia.ALL_TYPES:
        raise InvalidField(description='media_type must be image or video')
    media = TicketMedia(ticket_id=ticket.id, url=url, media_type=media_type, is_before=is_before, description=description)
    session.add(media)
    session.commit()
    return media


def delete_media(tenant_id: int, ticket_id: int, media_id: int, kind: Optional[str] = None, session=None):
    session = session or get_db()
    ticket = load_ticket(tenant_id, ticket_id, kind, session=session)
    media = session.execute(
        select(TicketMedia).where(TicketMedia.id == media_id, TicketMedia.ticket_id == ticket.id)
    ).scalar_one_or_none()
    if media is None:
        raise MediaNotFound()
    session.delete(media)
    session.commit()


def media_json(m: TicketMedia):
    return {
        'id': m.id,
        'ticket_id': m.ticket_id,
        'url': m.url,
        'media_type': m.media_type,
        'is_before': m.is_before,
        'description': m.description,
        'created_at': m.created_at.isoformat() if m.created_at else None,
    }
