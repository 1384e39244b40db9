import os
import sys
from datetime import datetime, timedelta
import pytest

# Ensure the backend root (containing the `bounce` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from config import Config
from bounce import create_app, db, socketio

TEST_SECRET = 'test-secret-key-do-not-use-in-production'


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SCORE_SECRET = TEST_SECRET
    CLIENT_IP_HEADER = ''
    CORS_ORIGINS = ['*']
    SUBMIT_COOLDOWN_SEC = 30
    # Throttling is exercised explicitly in the tests that need it
    RATE_LIMIT_ENABLED = False
    EXPOSE_ERROR_DETAIL = False


class FakeClock:
    """Deterministic replacement for the guard's UTC clock."""

    def __init__(self, start=None):
        self.now = start or datetime(2025, 10, 19, 12, 0, 0)

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now = self.now + timedelta(seconds=seconds)
        return self.now


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import bounce.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def valid_payload():
    return {'name': 'TestPlayer', 'score': 1000, 'level': 5, 'secret': TEST_SECRET}


@pytest.fixture()
def submit(client):
    """POST a score from a given client address."""
    def _submit(payload, ip='10.0.0.1', **kwargs):
        return client.post('/api/submit', json=payload, environ_base={'REMOTE_ADDR': ip}, **kwargs)
    return _submit


@pytest.fixture()
def sio_client(flask_app):
    test_client = socketio.test_client(
        flask_app,
        flask_test_client=flask_app.test_client(),
        namespace='/ws'
    )
    yield test_client
    try:
        test_client.disconnect(namespace='/ws')
    except Exception:
        pass
