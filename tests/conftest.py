"""
Pytest fixtures for cashdesk tests.

Provides an in-memory application, a per-test clean database, actor
contexts for two cashiers and a manager, and drawer factories.
"""

from datetime import datetime, timedelta

import pytest

from cashdesk import create_app
from cashdesk.extensions import db
from cashdesk.services import drawer_service
from cashdesk.services.permission_service import ActorContext

TENANT = "acme"
OTHER_TENANT = "globex"


@pytest.fixture(scope='session')
def app():
    """Create application for testing."""
    app = create_app({
        'TESTING': True,
        'SQLALCHEMY_DATABASE_URI': 'sqlite:///:memory:',
        'SQLALCHEMY_TRACK_MODIFICATIONS': False,
        'LEDGER_RETRY_BACKOFF': 0,
    })

    with app.app_context():
        db.create_all()
        yield app
        db.drop_all()


@pytest.fixture(scope='function')
def client(app):
    """Create test client."""
    return app.test_client()


@pytest.fixture(scope='function')
def db_session(app):
    """Create fresh database for each test."""
    with app.app_context():
        # Clear all data but keep schema
        meta = db.metadata
        for table in reversed(meta.sorted_tables):
            db.session.execute(table.delete())
        db.session.commit()

        yield db.session

        # Cleanup after test
        db.session.rollback()


@pytest.fixture
def alice():
    return ActorContext(actor_id="alice", tenant_id=TENANT, role="cashier")


@pytest.fixture
def bob():
    return ActorContext(actor_id="bob", tenant_id=TENANT, role="cashier")


@pytest.fixture
def carol():
    """Cashier with no drawer involvement; used as an unrelated third party."""
    return ActorContext(actor_id="carol", tenant_id=TENANT, role="cashier")


@pytest.fixture
def manager():
    return ActorContext(actor_id="mgr", tenant_id=TENANT, role="manager")


@pytest.fixture
def outsider_manager():
    return ActorContext(actor_id="mgr-globex", tenant_id=OTHER_TENANT, role="manager")


@pytest.fixture
def make_drawer(db_session):
    """Factory: create a drawer for an actor and optionally open it."""

    def _make(actor, opening_balance_cents=None, **kwargs):
        drawer = drawer_service.create_drawer(actor, **kwargs)
        if opening_balance_cents is not None:
            drawer = drawer_service.open_drawer(actor, drawer.id, opening_balance_cents)
        return drawer

    return _make


@pytest.fixture
def alice_drawer(make_drawer, alice):
    return make_drawer(alice, 100000)


@pytest.fixture
def bob_drawer(make_drawer, bob):
    return make_drawer(bob, 20000)


@pytest.fixture
def clock(monkeypatch):
    """
    Controllable journal clock.

    Patches the time source used for journal entries; advance with
    clock.tick(minutes=...) or jump with clock.set(datetime).
    """

    class _Clock:
        def __init__(self):
            self.now = datetime(2026, 3, 1, 9, 0, 0)

        def __call__(self):
            return self.now

        def tick(self, **delta):
            self.now = self.now + timedelta(**delta)
            return self.now

        def set(self, value):
            self.now = value
            return self.now

    fake = _Clock()
    monkeypatch.setattr(drawer_service, "utcnow", fake)
    return fake


def actor_headers(actor):
    return {
        "X-Actor-Id": actor.actor_id,
        "X-Tenant-Id": actor.tenant_id,
        "X-Actor-Role": actor.role,
    }


@pytest.fixture
def headers():
    """Build upstream-auth headers for an ActorContext."""
    return actor_headers
