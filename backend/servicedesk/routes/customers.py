from __future__ import annotations
from flask import Blueprint, request
from sqlalchemy import or_
from servicedesk import get_db
from servicedesk.decorators.auth import require_permissions
from servicedesk.models.tenant import Customer
from servicedesk.services.tenancy import current_tenant_id, load_customer
from servicedesk.utils.listing import apply_multi_sort, apply_pagination, list_response
from servicedesk.utils.validation import parse_text, require_object

customers_bp = Blueprint('customers', __name__)


@customers_bp.get('')
@require_permissions('CUST.READ')
def list_customers():
    session = get_db()
    tenant_id = current_tenant_id()
    q = session.query(Customer).filter(Customer.company_id == tenant_id)
    search = request.args.get('q')
    if search:
        like = f"%{search}%"
        q = q.filter(or_(Customer.first_name.ilike(like), Customer.last_name.ilike(like), Customer.email.ilike(like)))
    allowed = {'last_name': Customer.last_name, 'first_name': Customer.first_name, 'id': Customer.id}
    q = apply_multi_sort(q, request.args.get('sort'), allowed, Customer.id)
    paged_q, total, limit, offset = apply_pagination(q)
    rows = [_customer_json(c) for c in paged_q.all()]
    return list_response(rows, total, limit, offset)


@customers_bp.post('')
@require_permissions('CUST.MANAGE')
def create_customer():
    session = get_db()
    tenant_id = current_tenant_id()
    data = require_object(request.json)
    c = Customer(
        company_id=tenant_id,
        first_name=parse_text(data.get('first_name'), 'first_name', required=True),
        last_name=parse_text(data.get('last_name'), 'last_name') or '',
        email=parse_text(data.get('email'), 'email'),
        phone=parse_text(data.get('phone'), 'phone'),
        address=parse_text(data.get('address'), 'address'),
    )
    session.add(c)
    session.commit()
    return _customer_json(c), 201


@customers_bp.get('/<int:customer_id>')
@require_permissions('CUST.READ')
def get_customer(customer_id: int):
    return _customer_json(load_customer(current_tenant_id(), customer_id))


def _customer_json(c: Customer):
    return {
        'id': c.id,
        'first_name': c.first_name,
        'last_name': c.last_name,
        'name': c.full_name,
        'email': c.email,
        'phone': c.phone,
        'address': c.address,
    }
