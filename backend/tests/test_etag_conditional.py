from tests.test_utils_seed import seed_tenant
from tests.test_lifecycle_helpers import jwt_headers, post_transition


def test_etag_conditional_tickets(client, app_instance):
    with app_instance.app_context():
        _, user, _, ticket = seed_tenant('repair')
        headers = jwt_headers(user.id)
    first = client.get('/tickets/repair?limit=5', headers=headers)
    assert first.status_code == 200
    etag = first.headers.get('ETag')
    assert etag
    # Conditional request
    second = client.get('/tickets/repair?limit=5', headers={**headers, 'If-None-Match': etag})
    assert second.status_code == 304
    assert second.headers.get('ETag') == etag
    # A status change bumps the version, so the list representation changes
    with app_instance.app_context():
        post_transition(client, 'repair', ticket.id, headers, 'received')
    third = client.get('/tickets/repair?limit=5', headers={**headers, 'If-None-Match': etag})
    assert third.status_code == 200
    assert third.headers.get('ETag') != etag


def test_etag_conditional_customers(client, app_instance):
    with app_instance.app_context():
        _, user, _, _ = seed_tenant('buyback')
        headers = jwt_headers(user.id)
    first = client.get('/customers?limit=5', headers=headers)
    assert first.status_code == 200
    etag = first.headers.get('ETag')
    second = client.get('/customers?limit=5', headers={**headers, 'If-None-Match': f'"{etag}"'})
    assert second.status_code == 304
