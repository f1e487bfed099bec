"""
Pytest configuration and fixtures for the inventory engine tests
"""
import os
import tempfile
from types import SimpleNamespace

import pytest

# Keep test runs from writing into the project's logs/ directory
os.environ.setdefault('LOG_DIR', os.path.join(tempfile.gettempdir(), 'office_inventory_test_logs'))

from office_inventory import create_app
from office_inventory import db as _db

TEST_PINS = {
    'admin': '1111',
    'assistant': '2222',
    'alice': '3333',
    'bob': '4444',
}


@pytest.fixture(scope='session')
def app():
    """Create Flask application for testing"""
    app = create_app({
        'TESTING': True,
        'SECRET_KEY': 'test-secret-key',
        'SQLALCHEMY_DATABASE_URI': 'sqlite://',
        'WTF_CSRF_ENABLED': False,
        'ENABLE_HTTPS': False,
        'FORCE_HTTPS_REDIRECT': False,
        'SESSION_COOKIE_SECURE': False,
        'REMEMBER_COOKIE_SECURE': False,
        'RATELIMIT_ENABLED': False,
    })
    return app


@pytest.fixture
def clean_tables(app):
    """Fresh tables for every test"""
    with app.app_context():
        _db.create_all()
    yield
    with app.app_context():
        _db.session.remove()
        _db.drop_all()


@pytest.fixture
def database(app, clean_tables):
    """Database inside an application context, for tests that call the engine directly"""
    with app.app_context():
        yield _db
        _db.session.remove()


def create_users():
    from office_inventory.buisness.core.user_context import UserContext
    from office_inventory.data.core.user_info.user import User

    admin = UserContext.create(None, name='Dana Admin', pin=TEST_PINS['admin'], role=User.ROLE_ADMIN).user
    assistant = UserContext.create(admin, name='Sam Stockroom', pin=TEST_PINS['assistant'], role=User.ROLE_ASSISTANT).user
    alice = UserContext.create(admin, name='Alice Moreno', pin=TEST_PINS['alice']).user
    bob = UserContext.create(admin, name='Bob Chen', pin=TEST_PINS['bob']).user
    return SimpleNamespace(admin=admin, assistant=assistant, alice=alice, bob=bob)


@pytest.fixture
def users(database):
    """Admin, inventory assistant and two staff members"""
    return create_users()


@pytest.fixture
def client(app, clean_tables):
    """Create Flask test client"""
    return app.test_client()


@pytest.fixture
def user_ids(app, clean_tables):
    """Seed users for HTTP tests and return their ids"""
    with app.app_context():
        seeded = create_users()
        ids = SimpleNamespace(**{key: getattr(seeded, key).id for key in ('admin', 'assistant', 'alice', 'bob')})
        _db.session.remove()
    return ids


@pytest.fixture
def pins():
    return dict(TEST_PINS)


@pytest.fixture
def login():
    """Log a test client in with a user's PIN"""
    def _login(client, user_id, pin):
        return client.post('/auth/pin-login', json={'user_id': user_id, 'pin': pin})
    return _login
