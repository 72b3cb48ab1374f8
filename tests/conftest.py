"""
Shared pytest fixtures for the broker test suite.
"""

import os

import pytest

# ---------------------------------------------------------------------------
# Environment stubs – must be set BEFORE any broker module is imported so
# that module-level configuration lookups don't pick up a real deployment.
# ---------------------------------------------------------------------------

os.environ.setdefault("SECRET_KEY", "test-secret-key")
os.environ.setdefault("CONFIG_PATH", "/tmp/vdi-broker-tests/config")

from vdi_broker.config.models import BrokerSettings  # noqa: E402
from vdi_broker.container import ServiceContainer  # noqa: E402
from vdi_broker.domain.identity import IdentityStore  # noqa: E402
from vdi_broker.domain.ledger import ResourceLedger  # noqa: E402
from vdi_broker.domain.notifier import NotificationFanout  # noqa: E402

POOL = [f"VDI0{i}" for i in range(1, 10)]

ACCOUNTS = [
    ("alice", "alice-pass"),
    ("bob", "bob-pass"),
    ("carol", "carol-pass"),
]


def make_settings(**overrides) -> BrokerSettings:
    """Settings for tests: three known accounts, no background monitor."""
    data = {
        "accounts": {
            "seed_defaults": True,
            "defaults": [{"username": u, "password": p} for u, p in ACCOUNTS],
        },
        "notifications": {"sweep_interval": 0},
        "security": {"rate_limiting": {"enabled": True, "default_limit": "1000/minute",
                                       "auth_limit": "1000/minute"}},
    }
    data.update(overrides)
    return BrokerSettings.model_validate(data)


# ---------------------------------------------------------------------------
# Channels
# ---------------------------------------------------------------------------

class FakeChannel:
    """In-memory channel recording every message sent to it."""

    def __init__(self, is_open: bool = True, fail: bool = False):
        self.is_open = is_open
        self.fail = fail
        self.sent: list[str] = []

    def send(self, text: str) -> None:
        if self.fail:
            raise ConnectionError("socket closed mid-send")
        self.sent.append(text)


@pytest.fixture
def channel_factory():
    """Factory for FakeChannel instances."""
    def _make(**kwargs) -> FakeChannel:
        return FakeChannel(**kwargs)
    return _make


# ---------------------------------------------------------------------------
# Domain objects
# ---------------------------------------------------------------------------

@pytest.fixture
def ledger():
    """Fresh ledger over VDI01..VDI09."""
    return ResourceLedger(POOL)


@pytest.fixture
def identity():
    """Identity store holding alice (1), bob (2) and carol (3)."""
    return IdentityStore(ACCOUNTS)


@pytest.fixture
def users(identity):
    """Shortcut: username -> User."""
    return {u.username: u for u in identity.list_users()}


@pytest.fixture
def notifier(ledger, identity):
    return NotificationFanout(ledger, identity)


@pytest.fixture
def services(ledger, identity, notifier):
    """ServiceContainer wired with the fixture ledger, identity and notifier."""
    container = ServiceContainer(make_settings())
    container._ledger = ledger
    container._identity = identity
    container._notifier = notifier
    return container


# ---------------------------------------------------------------------------
# Flask application
# ---------------------------------------------------------------------------

@pytest.fixture(scope="session")
def app():
    """One Flask app per test session (metrics register process-wide)."""
    from vdi_broker.app import create_app

    flask_app = create_app(settings=make_settings())
    flask_app.config["TESTING"] = True
    return flask_app


@pytest.fixture
def app_services(app, services):
    """Install fresh services into the shared app and reset rate limits."""
    from vdi_broker.api.rate_limit import limiter

    previous = app.extensions["services"]
    app.extensions["services"] = services
    limiter.reset()
    yield services
    app.extensions["services"] = previous


@pytest.fixture
def app_client(app, app_services):
    """Anonymous Flask test client."""
    return app.test_client()


@pytest.fixture
def login(app, app_services):
    """Factory returning a test client logged in as ``username``."""
    passwords = dict(ACCOUNTS)

    def _login(username: str):
        client = app.test_client()
        resp = client.post("/api/login", json={"username": username, "password": passwords[username]})
        assert resp.status_code == 200, resp.get_json()
        return client

    return _login
