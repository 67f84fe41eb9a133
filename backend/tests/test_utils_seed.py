"""Test seeding utilities to reduce duplication.

These helpers create companies, staff users, customers and tickets directly
through the ORM. Every call creates fresh rows (unique names / emails) so tests
sharing the session-scoped in-memory database never collide.
"""
import uuid
from typing import Optional
from servicedesk import get_db
from servicedesk.models.tenant import Company, Customer, User
from servicedesk.services.tickets import create_ticket


def unique(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4().hex[:8]}"


def ensure_company(name: Optional[str] = None, logo_url: Optional[str] = None) -> Company:
    session = get_db()
    company = Company(name=name or unique('Acme Repairs'), email='desk@example.com', logo_url=logo_url)
    session.add(company); session.commit()
    return company


def ensure_user(company: Optional[Company], role: str = User.ROLE_MANAGER, email: Optional[str] = None,
                password: str = 'pw', is_active: bool = True) -> User:
    session = get_db()
    email = email or f"{unique('staff')}@example.com"
    u = session.query(User).filter_by(email=email).one_or_none()
    if not u:
        u = User(name=email.split('@')[0], email=email, password_hash='', role=role,
                 company_id=company.id if company else None, is_active=is_active)
        u.set_password(password)
        session.add(u); session.commit(); session.refresh(u)
    return u


def create_customer(company: Company, email: Optional[str] = 'pat@example.com', first_name: str = 'Pat',
                    last_name: str = 'Jones') -> Customer:
    session = get_db()
    c = Customer(company_id=company.id, first_name=first_name, last_name=last_name, email=email)
    session.add(c); session.commit()
    return c


def seed_ticket(kind: str, company: Company, customer: Optional[Customer] = None, actor: Optional[User] = None, **fields):
    """Create a ticket through the service layer (initial status, numbered, creation event)."""
    customer = customer or create_customer(company)
    fields.setdefault('device_type', 'Phone')
    fields.setdefault('device_model', 'X100')
    return create_ticket(kind, company.id, customer.id, fields, actor_id=actor.id if actor else None)


def seed_tenant(kind: str = 'repair', customer_email: Optional[str] = 'pat@example.com', **fields):
    """Company + manager + customer + one ticket of ``kind``."""
    company = ensure_company()
    user = ensure_user(company)
    customer = create_customer(company, email=customer_email)
    ticket = seed_ticket(kind, company, customer, actor=user, **fields)
    return company, user, customer, ticket


__all__ = ['unique', 'ensure_company', 'ensure_user', 'create_customer', 'seed_ticket', 'seed_tenant']
