import os
import sys
import pytest

# Ensure the backend root (containing the `matchplay` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from config import Config
from matchplay import create_app, socketio
from matchplay.services.games import SessionManager


class TestConfig(Config):
    TESTING = True
    SECRET_KEY = 'test-secret'
    SOCKETIO_NAMESPACE = '/ws'
    # Deliver game_end synchronously so tests can assert on it
    END_NOTICE_DELAY_SEC = 0


class Recorder:
    """Collects what the session manager asks the transport to deliver."""

    def __init__(self):
        self.sent = []

    def __call__(self, event, payload, sid):
        self.sent.append((event, payload, sid))

    def events_for(self, sid):
        return [(event, payload) for event, payload, to in self.sent if to == sid]

    def names_for(self, sid):
        return [event for event, _ in self.events_for(sid)]

    def last(self, sid, event):
        matches = [payload for name, payload in self.events_for(sid) if name == event]
        return matches[-1] if matches else None

    def clear(self):
        self.sent.clear()


class ManualScheduler:
    """Holds deferred callbacks until the test runs them."""

    def __init__(self):
        self.pending = []

    def __call__(self, delay, callback):
        self.pending.append((delay, callback))

    def run_all(self):
        pending, self.pending = self.pending, []
        for _, callback in pending:
            callback()


@pytest.fixture()
def recorder():
    return Recorder()


@pytest.fixture()
def manager(recorder):
    return SessionManager(deliver=recorder, end_delay=0)


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_factory(flask_app):
    clients = []

    def _make():
        test_client = socketio.test_client(
            flask_app,
            flask_test_client=flask_app.test_client(),
            namespace='/ws'
        )
        clients.append(test_client)
        return test_client

    yield _make
    for test_client in clients:
        try:
            if test_client.is_connected('/ws'):
                test_client.disconnect(namespace='/ws')
        except Exception:
            pass


@pytest.fixture()
def sio_client(sio_factory):
    return sio_factory()
