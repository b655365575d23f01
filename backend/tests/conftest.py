import os
import sys
import pytest

# Ensure the backend root (containing the `arcade` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from arcade import create_app, db, socketio
from arcade.services.scratchpad import scratchpad


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    DATABASE_CONFIGURED = True
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    ALLOWED_ORIGINS = ['http://localhost:3000']
    LOG_LEVEL = 'DEBUG'
    BCRYPT_LOG_ROUNDS = 4
    BROADCAST_LIMIT = 20
    ERROR_REPORT_LIMIT = 100
    ADMIN_PASSWORD = 'password'


class UnconfiguredConfig(TestConfig):
    DATABASE_CONFIGURED = False


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import arcade.models  # noqa: F401
        db.create_all()
    # Requests push their own app context so the logged-in account never
    # leaks between test clients; in-memory sqlite keeps one shared
    # connection, so the tables survive between contexts.
    yield application
    with application.app_context():
        db.session.remove()
        db.drop_all()
    scratchpad.clear_all()


@pytest.fixture()
def unconfigured_app():
    return create_app(UnconfiguredConfig)


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    if test_client.is_connected('/ws'):
        test_client.disconnect(namespace='/ws')


@pytest.fixture()
def register(flask_app):
    """Registers an account through the API and returns the response JSON."""
    def _register(username, password='', ip='10.0.0.1', http_client=None):
        res = (http_client or flask_app.test_client()).post(
            '/accounts',
            json={'action': 'register', 'data': {'username': username, 'password': password}},
            headers={'X-Forwarded-For': ip},
        )
        assert res.status_code == 200, res.get_json()
        return res.get_json()
    return _register


@pytest.fixture()
def admin_client(flask_app, register):
    """A test client whose session belongs to the admin account BOSS."""
    from arcade.models import Account
    admin_http = flask_app.test_client()
    register('boss', password='hunter22', http_client=admin_http)
    with flask_app.app_context():
        account = Account.query.filter_by(username='BOSS').first()
        account.is_admin = True
        db.session.commit()
    return admin_http
