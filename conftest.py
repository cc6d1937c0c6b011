# conftest.py
import pytest

from petsynth import create_app
from petsynth.models import db


@pytest.fixture
def app(tmp_path):
    app = create_app('testing', overrides={
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'IMAGE_ASSET_DIR': str(tmp_path / 'images'),
        'AI_TEXT_PROVIDER': 'mock',
        'IMAGE_PROVIDER': 'none',
    })
    yield app
    with app.app_context():
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def register_user(client):
    """Registers an account and returns (user, Authorization headers)."""
    def _register(username='alice', password='secret1'):
        response = client.post('/api/auth/register', json={'username': username, 'password': password})
        assert response.status_code == 201, response.get_json()
        body = response.get_json()
        return body['user'], {'Authorization': f"Bearer {body['token']}"}
    return _register
