import pytest

import accounts
from app import create_app
from conftest import TEST_CONFIG, ADMIN_EMAIL, ADMIN_PASSWORD
from models import User


def test_missing_jwt_secret_refuses_to_start():
    config = dict(TEST_CONFIG, JWT_SECRET_KEY=None)
    with pytest.raises(RuntimeError):
        create_app(config)


def test_no_admin_seeded_without_credentials():
    app = create_app(dict(TEST_CONFIG, ADMIN_EMAIL=None, ADMIN_PASSWORD=None))
    with app.app_context():
        assert User.query.filter_by(role='admin').count() == 0


def test_admin_seeded_once(app):
    with app.app_context():
        admins = User.query.filter_by(email=ADMIN_EMAIL).all()
    assert len(admins) == 1
    assert admins[0].role == 'admin'


def test_health(client):
    resp = client.get('/api/health')
    assert resp.status_code == 200
    data = resp.get_json()
    assert data['status'] == 'OK'
    assert data['database'] == 'sqlite'


def test_security_headers(client):
    resp = client.get('/api/health')
    assert resp.headers['X-Content-Type-Options'] == 'nosniff'
    assert resp.headers['X-Frame-Options'] == 'DENY'


def test_unknown_endpoint_is_json_404(client):
    resp = client.get('/api/nope')
    assert resp.status_code == 404
    assert resp.get_json()['error'] == 'not_found'


def test_trailing_slash_tolerated(client):
    assert client.get('/api/health/').status_code == 200


def test_set_language_cookie(client):
    resp = client.get('/api/lang/zh')
    assert resp.status_code == 200
    assert resp.get_json()['lang'] == 'zh'
    assert 'lang=zh' in resp.headers['Set-Cookie']

    resp = client.get('/api/lang/xx')
    assert resp.get_json()['lang'] == 'en'


def test_malformed_json_is_invalid_input(client):
    resp = client.post('/api/auth/login', data='{"email": ', content_type='application/json')
    assert resp.status_code == 400
    body = resp.get_json()
    assert set(body) == {'error', 'msg'}
    assert body['error'] == 'invalid_input'
    assert body['msg'] == 'Malformed request body'


def test_wrong_method_is_json_405(client):
    resp = client.post('/api/health')
    assert resp.status_code == 405
    assert resp.get_json()['error'] == 'method_not_allowed'


def test_oversized_body_is_json_413():
    app = create_app(dict(TEST_CONFIG, MAX_CONTENT_LENGTH=256))
    resp = app.test_client().post('/api/auth/register', json={
        'username': 'bob', 'email': 'bob@x.com', 'password': 'secret1', 'phone': 'x' * 1024
    })
    assert resp.status_code == 413
    assert resp.get_json()['error'] == 'too_large'


def _file_db_config(tmp_path, **extra):
    return dict(TEST_CONFIG, SQLALCHEMY_DATABASE_URI=f"sqlite:///{tmp_path / 'seed.db'}", **extra)


def test_admin_seed_skipped_when_username_taken(tmp_path):
    first = create_app(_file_db_config(tmp_path, ADMIN_EMAIL=None, ADMIN_PASSWORD=None))
    resp = first.test_client().post('/api/auth/register', json={
        'username': 'admin', 'email': 'x@x.com', 'password': 'secret1'
    })
    assert resp.status_code == 201

    app = create_app(_file_db_config(tmp_path))
    with app.app_context():
        assert User.query.filter_by(role='admin').count() == 0
        assert User.query.filter_by(username='admin').one().role == 'user'
        assert User.query.filter_by(email=ADMIN_EMAIL).first() is None


def test_admin_seed_refuses_to_promote_existing_email_holder(tmp_path):
    first = create_app(_file_db_config(tmp_path, ADMIN_EMAIL=None, ADMIN_PASSWORD=None))
    resp = first.test_client().post('/api/auth/register', json={
        'username': 'eve', 'email': ADMIN_EMAIL, 'password': 'secret1'
    })
    assert resp.status_code == 201

    app = create_app(_file_db_config(tmp_path))
    with app.app_context():
        assert User.query.filter_by(role='admin').count() == 0
        assert User.query.filter_by(email=ADMIN_EMAIL).one().role == 'user'
        assert accounts.ensure_admin('admin', ADMIN_EMAIL, ADMIN_PASSWORD) is False


def test_admin_seed_is_idempotent_on_restart(tmp_path):
    create_app(_file_db_config(tmp_path))
    app = create_app(_file_db_config(tmp_path))
    with app.app_context():
        assert User.query.filter_by(role='admin').count() == 1
        assert accounts.ensure_admin('admin', ADMIN_EMAIL, ADMIN_PASSWORD) is True
