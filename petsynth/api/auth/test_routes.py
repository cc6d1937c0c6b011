# petsynth/api/auth/test_routes.py
import pytest

from petsynth.core.security import verify_token

UNAUTHORIZED = {"error_code": "UNAUTHORIZED", "message": "Authentication required"}


def test_register_returns_token_user_and_cookie(client, app):
    response = client.post('/api/auth/register', json={'username': 'alice', 'password': 'secret1'})

    assert response.status_code == 201
    body = response.get_json()
    assert body['user']['username'] == 'alice'
    assert set(body['user']) == {'id', 'username'}
    cookie = response.headers.get('Set-Cookie')
    assert 'HttpOnly' in cookie
    assert 'Max-Age=86400' in cookie
    with app.app_context():
        assert verify_token(body['token']).subject_id == body['user']['id']


@pytest.mark.parametrize("username, password", [
    ('alice', 'secret1'),
    ('bob_the_builder', 'p' * 72),
    ('abc', 'sixsix'),
])
def test_register_then_login_recovers_same_subject(client, app, username, password):
    registered = client.post('/api/auth/register', json={'username': username, 'password': password}).get_json()

    response = client.post('/api/auth/login', json={'username': username, 'password': password})

    assert response.status_code == 200
    body = response.get_json()
    assert body['user'] == registered['user']
    with app.app_context():
        assert verify_token(body['token']).subject_id == registered['user']['id']


def test_duplicate_username_conflicts(client):
    client.post('/api/auth/register', json={'username': 'alice', 'password': 'secret1'})
    response = client.post('/api/auth/register', json={'username': 'alice', 'password': 'other-secret'})
    assert response.status_code == 409
    assert response.get_json()['error_code'] == 'USERNAME_TAKEN'


@pytest.mark.parametrize("payload, field", [
    ({'username': 'al', 'password': 'secret1'}, 'username'),
    ({'username': 'a' * 25, 'password': 'secret1'}, 'username'),
    ({'username': 'alice', 'password': 'short'}, 'password'),
    ({'username': 'alice', 'password': 'p' * 73}, 'password'),
    ({'username': 'alice'}, 'password'),
    ({'username': 'alice', 'password': 'secret1', 'admin': True}, 'admin'),
])
def test_register_validation(client, payload, field):
    response = client.post('/api/auth/register', json=payload)
    assert response.status_code == 400
    body = response.get_json()
    assert body['error_code'] == 'VALIDATION_ERROR'
    assert field in body['details']


def test_register_without_body_is_a_validation_error(client):
    response = client.post('/api/auth/register', data='not json', content_type='text/plain')
    assert response.status_code == 400


def test_login_failures_are_indistinguishable(client):
    client.post('/api/auth/register', json={'username': 'alice', 'password': 'secret1'})

    wrong_password = client.post('/api/auth/login', json={'username': 'alice', 'password': 'secret2'})
    unknown_user = client.post('/api/auth/login', json={'username': 'mallory', 'password': 'secret1'})

    assert wrong_password.status_code == unknown_user.status_code == 401
    assert wrong_password.get_json() == unknown_user.get_json()


def test_me_returns_identity(client, register_user):
    user, headers = register_user()
    response = client.get('/api/auth/me', headers=headers)
    assert response.status_code == 200
    assert response.get_json() == user


def test_me_accepts_cookie(client, register_user):
    user, _ = register_user()
    # the register response left the auth_token cookie in the client
    response = client.get('/api/auth/me')
    assert response.status_code == 200
    assert response.get_json()['id'] == user['id']


@pytest.mark.parametrize("headers", [
    {},
    {'Authorization': 'Bearer not-a-token'},
    {'Authorization': 'Bearer a.b.c'},
    {'Authorization': 'Token abc'},
])
def test_me_rejects_missing_or_bad_tokens_uniformly(app, headers):
    response = app.test_client().get('/api/auth/me', headers=headers)
    assert response.status_code == 401
    assert response.get_json() == UNAUTHORIZED


def test_me_rejects_expired_token(app):
    from petsynth.core.security import issue_token
    with app.app_context():
        token = issue_token('user-1', 'alice', ttl_seconds=-5)
    response = app.test_client().get('/api/auth/me', headers={'Authorization': f'Bearer {token}'})
    assert response.status_code == 401
    assert response.get_json() == UNAUTHORIZED
