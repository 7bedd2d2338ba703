"""
CommunityCare API - test configuration and fixtures
"""
import pytest

from app import create_app

ADMIN_EMAIL = 'admin@community.test'
ADMIN_PASSWORD = 'admin-pass-123'

TEST_CONFIG = {
    'TESTING': True,
    'SQLALCHEMY_DATABASE_URI': 'sqlite://',
    'JWT_SECRET_KEY': 'test-jwt-secret-key-for-testing-only',
    'PASSWORD_HASH_METHOD': 'pbkdf2:sha256:1000',
    'API_PREFIX': '/api',
    'LOG_LEVEL': 'WARNING',
    'ADMIN_USERNAME': 'admin',
    'ADMIN_EMAIL': ADMIN_EMAIL,
    'ADMIN_PASSWORD': ADMIN_PASSWORD,
}


@pytest.fixture
def app():
    """A fresh in-memory database per test"""
    return create_app(dict(TEST_CONFIG))


@pytest.fixture
def client(app):
    return app.test_client()


def bearer(token):
    return {'Authorization': f'Bearer {token}'}


@pytest.fixture
def register(client):
    def _register(username, email, password='secret1', **extra):
        return client.post('/api/auth/register', json={
            'username': username, 'email': email, 'password': password, **extra
        })
    return _register


@pytest.fixture
def login(client):
    def _login(email, password='secret1'):
        resp = client.post('/api/auth/login', json={'email': email, 'password': password})
        assert resp.status_code == 200, resp.get_json()
        return resp.get_json()['token']
    return _login


@pytest.fixture
def admin_headers(login):
    return bearer(login(ADMIN_EMAIL, ADMIN_PASSWORD))


@pytest.fixture
def alice(register, login):
    """Registered regular user; returns (user_id, headers)"""
    resp = register('alice', 'alice@x.com', 'secret1')
    assert resp.status_code == 201
    return resp.get_json()['userId'], bearer(login('alice@x.com', 'secret1'))


@pytest.fixture
def make_report(client):
    def _make(headers, **fields):
        body = {'problem_type': 'Pothole', 'location': 'Main St', 'issue': 'large pothole'}
        body.update(fields)
        resp = client.post('/api/reports', json=body, headers=headers)
        assert resp.status_code == 201, resp.get_json()
        return resp.get_json()['reportId']
    return _make
