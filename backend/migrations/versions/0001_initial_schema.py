"""initial tenant, ticket and activity tables

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-18
"""
from __future__ import annotations
from alembic import op
import sqlalchemy as sa

revision = '0001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table('companies',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('email', sa.String(length=128)),
        sa.Column('phone', sa.String(length=32)),
        sa.Column('address', sa.String(length=255)),
        sa.Column('logo_url', sa.String(length=512)),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'))
    )

    op.create_table('users',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('company_id', sa.Integer(), sa.ForeignKey('companies.id', ondelete='SET NULL'), nullable=True),
        sa.Column('name', sa.String(length=128), nullable=False),
        sa.Column('email', sa.String(length=128), nullable=False, unique=True),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=32), nullable=False, server_default='technician'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('1')),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'))
    )
    op.create_index('ix_users_email', 'users', ['email'])
    op.create_index('ix_users_company_id', 'users', ['company_id'])

    op.create_table('customers',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('company_id', sa.Integer(), sa.ForeignKey('companies.id', ondelete='CASCADE'), nullable=False),
        sa.Column('first_name', sa.String(length=80), nullable=False),
        sa.Column('last_name', sa.String(length=80), nullable=False, server_default=''),
        sa.Column('email', sa.String(length=128)),
        sa.Column('phone', sa.String(length=32)),
        sa.Column('address', sa.String(length=255)),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('CURRENT_TIMESTAMP'))
    )
    op.create_index('ix_customers_company_id', 'customers', ['company_id'])

    op.create_table('tickets',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('kind', sa.String(length=16), nullable=False),
        sa.Column('company_id', sa.Integer(), sa.ForeignKey('companies.id'), nullable=False),
        sa.Column('customer_id', sa.Integer(), sa.ForeignKey('customers.id'), nullable=False),
        sa.Column('ticket_number', sa.String(length=32), nullable=False),
        sa.Column('device_type', sa.String(length=80), nullable=False),
        sa.Column('device_model', sa.String(length=120), nullable=False, server_default=''),
        sa.Column('serial_number', sa.String(length=80)),
        sa.Column('notes', sa.Text()),
        sa.Column('status', sa.String(length=32), nullable=False),
        sa.Column('version', sa.Integer(), nullable=False, server_default=sa.text('1')),
        sa.Column('created_by', sa.Integer()),
        sa.Column('created_at', sa.DateTime(timezone=True)),
        sa.Column('updated_at', sa.DateTime(timezone=True)),
        # repair
        sa.Column('issue_description', sa.Text()),
        sa.Column('diagnosis', sa.Text()),
        sa.Column('technician_notes', sa.Text()),
        sa.Column('estimated_cost', sa.Numeric(10, 2)),
        sa.Column('actual_cost', sa.Numeric(10, 2)),
        sa.Column('is_urgent', sa.Boolean()),
        # buyback
        sa.Column('condition', sa.String(length=64)),
        sa.Column('offered_amount', sa.Numeric(10, 2)),
        # refurbishing
        sa.Column('screen_condition_before', sa.String(length=1)),
        sa.Column('screen_condition_after', sa.String(length=1)),
        sa.Column('refurbishing_cost', sa.Numeric(10, 2)),
        sa.Column('sale_price', sa.Numeric(10, 2)),
    )
    with op.batch_alter_table('tickets') as batch_op:
        batch_op.create_unique_constraint('uq_ticket_company_number', ['company_id', 'ticket_number'])
    op.create_index('ix_tickets_kind', 'tickets', ['kind'])
    op.create_index('ix_tickets_company_id', 'tickets', ['company_id'])
    op.create_index('ix_tickets_customer_id', 'tickets', ['customer_id'])
    op.create_index('ix_tickets_status', 'tickets', ['status'])

    op.create_table('status_events',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('ticket_id', sa.Integer(), sa.ForeignKey('tickets.id'), nullable=False),
        sa.Column('kind', sa.String(length=16), nullable=False),
        sa.Column('previous_status', sa.String(length=32)),
        sa.Column('new_status', sa.String(length=32), nullable=False),
        sa.Column('note', sa.Text()),
        sa.Column('actor_id', sa.Integer()),
        sa.Column('created_at', sa.DateTime(timezone=True))
    )
    op.create_index('ix_status_events_kind_ticket', 'status_events', ['kind', 'ticket_id'])

    op.create_table('conversation_messages',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('ticket_id', sa.Integer(), sa.ForeignKey('tickets.id'), nullable=False),
        sa.Column('author_kind', sa.String(length=16), nullable=False),
        sa.Column('author_id', sa.Integer()),
        sa.Column('body', sa.Text(), nullable=False),
        sa.Column('message_type', sa.String(length=32), nullable=False, server_default='message'),
        sa.Column('created_at', sa.DateTime(timezone=True))
    )
    op.create_index('ix_conversation_messages_ticket_id', 'conversation_messages', ['ticket_id'])

    op.create_table('ticket_media',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('ticket_id', sa.Integer(), sa.ForeignKey('tickets.id'), nullable=False),
        sa.Column('url', sa.String(length=1024), nullable=False),
        sa.Column('media_type', sa.String(length=16), nullable=False, server_default='image'),
        sa.Column('is_before', sa.Boolean()),
        sa.Column('description', sa.String(length=255)),
        sa.Column('created_at', sa.DateTime(timezone=True))
    )
    op.create_index('ix_ticket_media_ticket_id', 'ticket_media', ['ticket_id'])


def downgrade():
    for tbl in ['ticket_media', 'conversation_messages', 'status_events', 'tickets', 'customers', 'users', 'companies']:
        op.drop_table(tbl)
