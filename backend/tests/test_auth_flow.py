from tests.test_utils_seed import ensure_company, ensure_user, unique


def test_login_and_me(client, app_instance):
    email = f"{unique('tech')}@example.com"
    with app_instance.app_context():
        company = ensure_company()
        ensure_user(company, role='technician', email=email, password='pw')
        company_id = company.id

    resp = client.post('/auth/login', json={'email': email, 'password': 'pw'})
    assert resp.status_code == 200, resp.get_json()
    token = resp.get_json()['access_token']

    me = client.get('/auth/me', headers={'Authorization': f'Bearer {token}'})
    assert me.status_code == 200
    body = me.get_json()
    assert body['email'] == email
    assert body['company_id'] == company_id
    assert body['role'] == 'technician'
    assert 'CUST.MANAGE' not in body['perms']
    assert 'TKT.MANAGE' in body['perms']


def test_login_rejects_bad_password_and_inactive_user(client, app_instance):
    active = f"{unique('active')}@example.com"
    inactive = f"{unique('inactive')}@example.com"
    with app_instance.app_context():
        company = ensure_company()
        ensure_user(company, email=active, password='right')
        ensure_user(company, email=inactive, password='pw', is_active=False)
    assert client.post('/auth/login', json={'email': active, 'password': 'wrong'}).status_code == 401
    assert client.post('/auth/login', json={'email': inactive, 'password': 'pw'}).status_code == 401
    assert client.post('/auth/login', json={'email': active}).status_code == 400


def test_admin_login_gets_every_permission(client, app_instance):
    email = f"{unique('admin')}@example.com"
    with app_instance.app_context():
        ensure_user(ensure_company(), role='admin', email=email, password='pw')
    token = client.post('/auth/login', json={'email': email, 'password': 'pw'}).get_json()['access_token']
    perms = client.get('/auth/me', headers={'Authorization': f'Bearer {token}'}).get_json()['perms']
    assert sorted(perms) == ['CUST.MANAGE', 'CUST.READ', 'TKT.MANAGE', 'TKT.READ']
