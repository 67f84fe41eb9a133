from tests.test_utils_seed import ensure_company, ensure_user
from tests.test_lifecycle_helpers import jwt_headers


def test_customers_multi_sort(client, app_instance):
    with app_instance.app_context():
        user = ensure_user(ensure_company())
        headers = jwt_headers(user.id)
    client.post('/customers', json={'first_name': 'Charlie', 'last_name': 'Same'}, headers=headers)
    client.post('/customers', json={'first_name': 'Bravo', 'last_name': 'Same'}, headers=headers)
    client.post('/customers', json={'first_name': 'Alpha', 'last_name': 'Same'}, headers=headers)
    resp = client.get('/customers?sort=last_name,-first_name', headers=headers)
    assert resp.status_code == 200
    names = [c['first_name'] for c in resp.get_json()['data']]
    # Descending first name within equal last name
    assert names == ['Charlie', 'Bravo', 'Alpha']


def test_tickets_sort_descending_number(client, app_instance):
    with app_instance.app_context():
        company = ensure_company()
        user = ensure_user(company)
        headers = jwt_headers(user.id)
    customer_id = client.post('/customers', json={'first_name': 'Sam'}, headers=headers).get_json()['id']
    for model in ('A1', 'A2', 'A3'):
        resp = client.post('/tickets/refurbishing', json={'customer_id': customer_id, 'device_type': 'Tablet',
                                                          'device_model': model}, headers=headers)
        assert resp.status_code == 201
    resp = client.get('/tickets/refurbishing?sort=-ticket_number', headers=headers)
    numbers = [t['ticket_number'] for t in resp.get_json()['data']]
    assert numbers == ['REF-000003', 'REF-000002', 'REF-000001']


def test_unknown_sort_field_rejected(client, app_instance):
    with app_instance.app_context():
        headers = jwt_headers(ensure_user(ensure_company()).id)
    resp = client.get('/tickets/repair?sort=password', headers=headers)
    assert resp.status_code == 400
    assert 'password' in resp.get_json()['error']['detail']
