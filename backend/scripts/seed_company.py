#!/usr/bin/env python
"""Idempotent bootstrap for a company and its first admin user.

Usage:
    python backend/scripts/seed_company.py                       # seed normally
    python backend/scripts/seed_company.py --name "Acme Repairs" # company name
    python backend/scripts/seed_company.py --dry-run             # run logic then rollback (no DB changes)

The admin login comes from SEED_ADMIN_EMAIL / SEED_ADMIN_PASSWORD.
"""
from __future__ import annotations
import os, sys, argparse, textwrap
from sqlalchemy import select, text

# Allow running from repo root
sys.path.append(os.path.abspath('backend'))

from servicedesk import create_app, get_db  # type: ignore
from servicedesk.models.tenant import Base, Company, User


def ensure_company(session, name: str, email: str = None, logo_url: str = None):
    company = session.execute(select(Company).where(Company.name == name)).scalar_one_or_none()
    if company:
        return company, False
    company = Company(name=name, email=email, logo_url=logo_url)
    session.add(company)
    session.flush()
    return company, True


def ensure_initial_admin(session, company, email: str, password: str):
    existing = session.execute(select(User).where(User.email == email)).scalar_one_or_none()
    if existing:
        if existing.company_id != company.id:
            print(f"[WARN] {email} already belongs to company {existing.company_id}; left unchanged")
        return existing, False
    user = User(name='Admin', email=email, password_hash='', role=User.ROLE_ADMIN, company_id=company.id)
    user.set_password(password)
    session.add(user)
    session.flush()
    print(f"[INFO] Created admin user {email} with temporary password.")
    return user, True


def parse_args(argv=None):
    p = argparse.ArgumentParser(
        description="Seed a company and its admin user",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=textwrap.dedent("""Examples:\n  seed normally: seed_company.py\n  dry run: seed_company.py --dry-run\n""")
    )
    p.add_argument('--name', default=os.getenv('SEED_COMPANY_NAME', 'Demo Device Services'), help='Company name')
    p.add_argument('--email', default=os.getenv('SEED_COMPANY_EMAIL'), help='Company contact email')
    p.add_argument('--logo-url', default=None, help='Logo shown in customer emails')
    p.add_argument('--dry-run', action='store_true', help='Rollback after operations (no commit)')
    return p.parse_args(argv)


def main(argv=None, app=None):
    args = parse_args(argv)
    app = app or create_app()
    with app.app_context():
        session = get_db()
        try:
            session.execute(text('SELECT 1 FROM companies LIMIT 1'))
        except Exception:
            # Auto-create schema for bootstrap; in real env prefer alembic upgrade
            session.rollback()
            import servicedesk.models.ticket, servicedesk.models.history, servicedesk.models.media  # noqa: F401
            Base.metadata.create_all(session.get_bind())
        finally:
            session.commit()

        company, created_c = ensure_company(session, args.name, email=args.email, logo_url=args.logo_url)
        _, created_u = ensure_initial_admin(
            session, company,
            os.getenv('SEED_ADMIN_EMAIL', 'admin@example.com'),
            os.getenv('SEED_ADMIN_PASSWORD', 'ChangeMe123!'),
        )
        if args.dry_run:
            session.rollback()
            print(f"[DRY-RUN] (rolled back) Company would create: {int(created_c)}, Admin would create: {int(created_u)}")
        else:
            session.commit()
            print(f"[DONE] Company created: {int(created_c)}, Admin created: {int(created_u)}")
    return 0


if __name__ == '__main__':
    sys.exit(main())
