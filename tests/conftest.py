import pytest
from urllib.parse import urlparse

from cutiscura_app import create_app
from cutiscura_app.utils import DatabaseManager


@pytest.fixture
def app(tmp_path):
    app = create_app('testing', {
        'DATABASE': str(tmp_path / 'cutiscura.sqlite'),
        'LOG_FILE': str(tmp_path / 'cutiscura.log'),
    })
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def runner(app):
    return app.test_cli_runner()


@pytest.fixture
def db(app):
    with app.app_context():
        yield DatabaseManager.get_connection()


class AuthActions:
    def __init__(self, client):
        self._client = client

    def login(self, email='asha@cutiscura.com', password='asha123'):
        return self._client.post('/login', data={'email': email, 'password': password})

    def logout(self):
        return self._client.post('/logout')


@pytest.fixture
def auth(client):
    return AuthActions(client)


def redirect_path(response):
    return urlparse(response.headers['Location']).path
