from __future__ import annotations
from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy import Integer, String, Boolean, ForeignKey, DateTime
from servicedesk.models.tenant import Base
from servicedesk.models.ticket import utcnow


class TicketMedia(Base):
    __tablename__ = 'ticket_media'
    TYPE_IMAGE = 'image'
    TYPE_VIDEO = 'video'
    ALL_TYPES = (TYPE_IMAGE, TYPE_VIDEO)
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    ticket_id: Mapped[int] = mapped_column(ForeignKey('tickets.id'), nullable=False, index=True)
    url: Mapped[str] = mapped_column(String(1024), nullable=False)
    media_type: Mapped[str] = mapped_column(String(16), nullable=False, default=TYPE_IMAGE)
    is_before: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True)
    description: Mapped[Optional[str]] = mapped_column(String(255))
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
