from __future__ import annotations
from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import Integer, String, Text, ForeignKey, DateTime, Index
from servicedesk.models.tenant import Base
from servicedesk.models.ticket import utcnow


class StatusEvent(Base):
    """Append-only audit trail, one row per applied status change (all kinds)."""
    __tablename__ = 'status_events'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    ticket_id: Mapped[int] = mapped_column(ForeignKey('tickets.id'), nullable=False)
    kind: Mapped[str] = mapped_column(String(16), nullable=False)
    previous_status: Mapped[Optional[str]] = mapped_column(String(32), nullable=True)
    new_status: Mapped[str] = mapped_column(String(32), nullable=False)
    note: Mapped[Optional[str]] = mapped_column(Text)
    actor_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (Index('ix_status_events_kind_ticket', 'kind', 'ticket_id'),)


class ConversationMessage(Base):
    __tablename__ = 'conversation_messages'
    AUTHOR_CUSTOMER = 'customer'
    AUTHOR_STAFF = 'staff'
    AUTHOR_TECHNICIAN = 'technician'
    AUTHOR_SYSTEM = 'system'
    ALL_AUTHOR_KINDS = (AUTHOR_CUSTOMER, AUTHOR_STAFF, AUTHOR_TECHNICIAN, AUTHOR_SYSTEM)
    TYPE_MESSAGE = 'message'
    TYPE_STATUS_CHANGE = 'status_change'
    TYPE_EMAIL = 'email_notification'
    ALL_TYPES = (TYPE_MESSAGE, TYPE_STATUS_CHANGE, TYPE_EMAIL)
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    ticket_id: Mapped[int] = mapped_column(ForeignKey('tickets.id'), nullable=False, index=True)
    author_kind: Mapped[str] = mapped_column(String(16), nullable=False)
    author_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    body: Mapped[str] = mapped_column(Text, nullable=False)
    message_type: Mapped[str] = mapped_column(String(32), nullable=False, default=TYPE_MESSAGE)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
