from tests.test_utils_seed import create_customer, ensure_company, ensure_user, seed_ticket
from tests.test_lifecycle_helpers import jwt_headers


def test_ticket_pagination_meta(client, app_instance):
    with app_instance.app_context():
        company = ensure_company()
        user = ensure_user(company)
        customer = create_customer(company)
        for _ in range(5):
            seed_ticket('buyback', company, customer, actor=user)
        headers = jwt_headers(user.id)
    resp = client.get('/tickets/buyback?limit=2&offset=1', headers=headers)
    assert resp.status_code == 200
    body = resp.get_json()
    assert body['pagination'] == {'total': 5, 'limit': 2, 'offset': 1, 'returned': 2}
    assert [t['ticket_number'] for t in body['data']] == ['BUY-000002', 'BUY-000003']


def test_limit_is_clamped_and_validated(client, app_instance):
    with app_instance.app_context():
        headers = jwt_headers(ensure_user(ensure_company()).id)
    resp = client.get('/tickets/repair?limit=5000', headers=headers)
    assert resp.get_json()['pagination']['limit'] == 200
    assert client.get('/tickets/repair?limit=abc', headers=headers).status_code == 400
