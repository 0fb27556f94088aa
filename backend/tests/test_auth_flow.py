import pytest
from datetime import timedelta
from lagerbuch import create_app
from conftest import login


def _session_cookie_set(resp):
    return any(h.startswith('lagerbuch_session=') for h in resp.headers.getlist('Set-Cookie'))


def test_login_with_real_directory_hash(client):
    body = login(client, 'MA001', 'test123')
    assert body['success'] is True
    assert body['employeeId'] == 'MA001'
    assert body['name'] == 'Max Mustermann'
    perms = body['permissions']
    assert perms['inventory']['edit'] is True
    assert perms['inventory']['delete'] is False
    assert perms['timeTracking']['view'] is True


def test_login_sets_http_only_cookie(client):
    resp = client.post('/api/login', json={'employeeId': 'MA001', 'password': 'test123'})
    cookies = [h for h in resp.headers.getlist('Set-Cookie') if h.startswith('lagerbuch_session=')]
    assert cookies and 'HttpOnly' in cookies[0]


def test_login_unknown_employee(client):
    resp = client.post('/api/login', json={'employeeId': 'MA999', 'password': 'x'})
    assert resp.status_code == 401
    assert resp.get_json() == {'success': False, 'message': 'Mitarbeiter nicht gefunden'}


def test_login_wrong_password(client):
    resp = client.post('/api/login', json={'employeeId': 'MA001', 'password': 'nope'})
    assert resp.status_code == 401
    assert resp.get_json()['message'] == 'Falsches Passwort'
    assert not _session_cookie_set(resp)


def test_login_alias_route(client):
    resp = client.post('/api/auth/login', json={'employeeId': 'T-ADMIN', 'password': 'pw'})
    assert resp.status_code == 200
    assert resp.get_json()['permissions']['employees']['manage'] is True


def test_session_check_round_trip(client):
    login(client, 'MA001', 'test123')
    resp = client.get('/api/auth/session')
    assert resp.status_code == 200
    body = resp.get_json()
    assert body['authenticated'] is True
    assert body['user']['id'] == 'MA001'
    assert body['user']['permissions']['inventory']['view'] is True
    assert _session_cookie_set(resp)


def test_session_check_without_cookie(client):
    resp = client.get('/api/auth/session')
    assert resp.status_code == 401
    assert resp.get_json() == {'authenticated': False, 'message': 'Session ungültig'}


def test_check_auth(client):
    assert client.get('/api/check-auth').get_json() == {'isLoggedIn': False}
    login(client, 'T-USER')
    body = client.get('/api/check-auth').get_json()
    assert body == {'isLoggedIn': True, 'userId': 'T-USER', 'userName': 'Test User'}


def test_logout_ends_session(client):
    login(client, 'MA001', 'test123')
    resp = client.post('/api/logout')
    assert resp.status_code == 200
    assert resp.get_json() == {'success': True}
    assert client.get('/api/auth/session').status_code == 401
    assert client.get('/api/inventory/items').status_code == 401


def test_authenticated_request_slides_the_session(client):
    login(client, 'MA001', 'test123')
    resp = client.get('/api/inventory/categories')
    assert resp.status_code == 200
    assert _session_cookie_set(resp)


def test_expired_session_is_rejected(app_config):
    app = create_app({**app_config, 'JWT_ACCESS_TOKEN_EXPIRES': timedelta(seconds=-1)})
    c = app.test_client()
    login(c, 'MA001', 'test123')
    resp = c.get('/api/inventory/items')
    assert resp.status_code == 401
    assert resp.get_json() == {'success': False, 'message': 'Nicht angemeldet'}
    assert c.get('/api/auth/session').status_code == 401


def test_idle_timeout_drives_token_lifetime(app_config):
    app = create_app({**app_config, 'SESSION_IDLE_TIMEOUT': 300})
    assert app.config['JWT_ACCESS_TOKEN_EXPIRES'] == timedelta(seconds=300)
    default = create_app(app_config)
    assert default.config['JWT_ACCESS_TOKEN_EXPIRES'] == timedelta(seconds=120)


def test_check_auth_clears_a_stale_cookie(client):
    client.set_cookie('lagerbuch_session', 'not-a-jwt')
    resp = client.get('/api/check-auth')
    assert resp.get_json() == {'isLoggedIn': False}
    cleared = [h for h in resp.headers.getlist('Set-Cookie') if h.startswith('lagerbuch_session=;')]
    assert cleared
    assert client.get_cookie('lagerbuch_session') is None


def test_check_auth_without_cookie_sets_nothing(client):
    resp = client.get('/api/check-auth')
    assert not _session_cookie_set(resp)


BOOKING = {'locationId': 'L01', 'typeId': 'T01', 'articleId': 'A001', 'quantity': 1}


@pytest.fixture()
def csrf_client(app_config):
    # production default: double-submit CSRF check on state-changing requests
    config = {k: v for k, v in app_config.items() if k != 'JWT_COOKIE_CSRF_PROTECT'}
    return create_app(config).test_client()


def test_missing_csrf_header_keeps_the_session(csrf_client, sheets):
    login(csrf_client, 'MA001', 'test123')
    before = len(sheets.inventory.tabs['Transaktionen'])
    resp = csrf_client.post('/api/inventory/movements', json=BOOKING)
    assert resp.status_code == 403
    assert resp.get_json() == {'success': False, 'message': 'CSRF-Token fehlt oder ist ungültig'}
    assert not _session_cookie_set(resp)
    assert len(sheets.inventory.tabs['Transaktionen']) == before
    assert csrf_client.get('/api/auth/session').status_code == 200


def test_wrong_csrf_header_is_rejected(csrf_client):
    login(csrf_client, 'MA001', 'test123')
    resp = csrf_client.post('/api/inventory/movements', json=BOOKING, headers={'X-CSRF-TOKEN': 'forged'})
    assert resp.status_code == 403
    assert csrf_client.get('/api/check-auth').get_json()['isLoggedIn'] is True


def test_echoed_csrf_cookie_is_accepted(csrf_client, sheets):
    login(csrf_client, 'MA001', 'test123')
    token = csrf_client.get_cookie('csrf_access_token').value
    resp = csrf_client.post('/api/inventory/movements', json=BOOKING, headers={'X-CSRF-TOKEN': token})
    assert resp.status_code == 201
    assert sheets.inventory.tabs['Transaktionen'][-1][2:6] == ['L01', 'T01', 'A001', '1']


def test_reads_do_not_need_a_csrf_header(csrf_client):
    login(csrf_client, 'T-VIEW')
    assert csrf_client.get('/api/inventory/movements').status_code == 200
