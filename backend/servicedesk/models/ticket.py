from __future__ import annotations
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional
from sqlalchemy.orm import Mapped, mapped_column, relationship
from sqlalchemy import Integer, String, Text, Boolean, Numeric, ForeignKey, DateTime, UniqueConstraint
from servicedesk.models.tenant import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Ticket(Base):
    """One row per device under service. ``kind`` selects the workflow.

    Repair, buyback and refurbishing tickets share this table (single-table
    inheritance); kind-specific columns are declared on the subclasses and are
    NULL for the other kinds.
    """
    __tablename__ = 'tickets'
    id: Mapped[int] = mapped_column(Integer, primary_key=True)
    kind: Mapped[str] = mapped_column(String(16), nullable=False, index=True)
    company_id: Mapped[int] = mapped_column(ForeignKey('companies.id'), nullable=False, index=True)
    customer_id: Mapped[int] = mapped_column(ForeignKey('customers.id'), nullable=False, index=True)
    ticket_number: Mapped[str] = mapped_column(String(32), nullable=False)
    device_type: Mapped[str] = mapped_column(String(80), nullable=False)
    device_model: Mapped[str] = mapped_column(String(120), nullable=False, default='')
    serial_number: Mapped[Optional[str]] = mapped_column(String(80))
    notes: Mapped[Optional[str]] = mapped_column(Text)
    status: Mapped[str] = mapped_column(String(32), nullable=False, index=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    created_by: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    customer = relationship('Customer', lazy='joined')
    company = relationship('Company', lazy='joined')

    __table_args__ = (UniqueConstraint('company_id', 'ticket_number', name='uq_ticket_company_number'),)
    __mapper_args__ = {
        'polymorphic_on': kind,
        'version_id_col': version,
    }

    @property
    def device_info(self) -> str:
        return f"{self.device_type} {self.device_model or ''}".strip()


class RepairTicket(Ticket):
    issue_description: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    diagnosis: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    technician_notes: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    estimated_cost: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    actual_cost: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    is_urgent: Mapped[Optional[bool]] = mapped_column(Boolean, nullable=True, default=False)

    __mapper_args__ = {'polymorphic_identity': 'repair'}


class BuybackTicket(Ticket):
    condition: Mapped[Optional[str]] = mapped_column(String(64), nullable=True)
    offered_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)

    __mapper_args__ = {'polymorphic_identity': 'buyback'}


class RefurbishingTicket(Ticket):
    screen_condition_before: Mapped[Optional[str]] = mapped_column(String(1), nullable=True)
    screen_condition_after: Mapped[Optional[str]] = mapped_column(String(1), nullable=True)
    refurbishing_cost: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    sale_price: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)

    __mapper_args__ = {'polymorphic_identity': 'refurbishing'}


TICKET_MODELS = {
    'repair': RepairTicket,
    'buyback': BuybackTicket,
    'refurbishing': RefurbishingTicket,
}
