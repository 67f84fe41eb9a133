import pytest
from servicedesk.errors import CustomerNotFound, TenantNotFound
from servicedesk.services.tenancy import load_customer, resolve_tenant
from tests.test_utils_seed import ensure_company, ensure_user, seed_tenant
from tests.test_lifecycle_helpers import jwt_headers


def test_resolve_tenant(app_context):
    company = ensure_company()
    user = ensure_user(company)
    assert resolve_tenant(user.id) == company.id
    with pytest.raises(TenantNotFound):
        resolve_tenant(None)
    with pytest.raises(TenantNotFound):
        resolve_tenant(99999999)
    with pytest.raises(TenantNotFound):
        resolve_tenant(ensure_user(None).id)
    with pytest.raises(TenantNotFound):
        resolve_tenant(ensure_user(company, is_active=False).id)


def test_customer_lookup_is_scoped(app_context):
    company, _, customer, _ = seed_tenant('repair')
    other, _, _, _ = seed_tenant('repair')
    assert load_customer(company.id, customer.id).id == customer.id
    with pytest.raises(CustomerNotFound):
        load_customer(other.id, customer.id)
    with pytest.raises(CustomerNotFound):
        load_customer(company.id, 'abc')


def test_foreign_ticket_indistinguishable_from_missing(client, app_instance):
    with app_instance.app_context():
        _, _, _, ticket = seed_tenant('buyback')
        _, intruder, _, _ = seed_tenant('buyback')
        headers = jwt_headers(intruder.id)
    foreign = client.get(f'/tickets/buyback/{ticket.id}', headers=headers)
    missing = client.get('/tickets/buyback/987654321', headers=headers)
    assert foreign.status_code == missing.status_code == 404
    assert foreign.get_json() == missing.get_json()
    # mutations fail the same way and leave the ticket untouched
    resp = client.post(f'/tickets/buyback/{ticket.id}/status', json={'status': 'received'}, headers=headers)
    assert resp.status_code == 404
    assert client.get(f'/tickets/buyback/{ticket.id}/messages', headers=headers).status_code == 404
    assert client.get(f'/tickets/buyback/{ticket.id}/history', headers=headers).status_code == 404
    assert client.post(f'/tickets/buyback/{ticket.id}/media', json={'url': 'https://x/y.jpg'},
                       headers=headers).status_code == 404


def test_kind_mismatch_is_not_found(client, app_instance):
    with app_instance.app_context():
        _, user, _, ticket = seed_tenant('repair')
        headers = jwt_headers(user.id)
    assert client.get(f'/tickets/repair/{ticket.id}', headers=headers).status_code == 200
    assert client.get(f'/tickets/refurbishing/{ticket.id}', headers=headers).status_code == 404
    assert client.get('/tickets/laptops', headers=headers).status_code == 404


def test_lists_only_show_own_company(client, app_instance):
    with app_instance.app_context():
        _, owner, _, own_ticket = seed_tenant('refurbishing')
        _, _, _, other_ticket = seed_tenant('refurbishing')
        headers = jwt_headers(owner.id)
    ids = [t['id'] for t in client.get('/tickets/refurbishing', headers=headers).get_json()['data']]
    assert ids == [own_ticket.id]
    assert other_ticket.id not in ids
    customers = client.get('/customers', headers=headers).get_json()['data']
    assert len(customers) == 1


def test_ticket_for_foreign_customer_rejected(client, app_instance):
    with app_instance.app_context():
        _, user, _, _ = seed_tenant('repair')
        _, _, foreign_customer, _ = seed_tenant('repair')
        headers = jwt_headers(user.id)
    resp = client.post('/tickets/repair', json={'customer_id': foreign_customer.id, 'device_type': 'Phone'},
                       headers=headers)
    assert resp.status_code == 404
    assert client.get(f'/customers/{foreign_customer.id}', headers=headers).status_code == 404


def test_user_without_company_is_rejected(client, app_instance):
    with app_instance.app_context():
        headers = jwt_headers(ensure_user(None).id)
    resp = client.get('/tickets/repair', headers=headers)
    assert resp.status_code == 404
    assert resp.get_json()['error']['detail'] == 'Company not found'
