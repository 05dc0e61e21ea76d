import os
import sys
import pytest

# Ensure the backend root (containing the `diceroom` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from diceroom import create_app, socketio
from diceroom.services.rooms.actions import RoomActions
from diceroom.services.rooms.store import MemoryRoomStore


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    ROOM_STORE = 'memory'
    ROOM_TTL_SEC = 3600
    ROLL_DELAY_SEC = 0
    JOIN_RETRY_DELAYS_MS = '0'
    JOIN_RECOVER_MISSING_ROOM = False
    SOCKETIO_NAMESPACE = '/'
    CORS_ORIGINS = '*'
    LOG_LEVEL = 'DEBUG'


class ScriptedRng:
    """Stands in for random.Random, handing out a fixed cycle of values."""

    def __init__(self, values):
        self.values = list(values)
        self.calls = 0

    def randint(self, low, high):
        value = self.values[self.calls % len(self.values)]
        self.calls += 1
        return value


class RecordingBroadcaster:
    def __init__(self):
        self.members = {}
        self.events = []

    def join(self, sid, room_id):
        self.members.setdefault(room_id, set()).add(sid)

    def leave(self, sid, room_id):
        self.members.get(room_id, set()).discard(sid)

    def send_state(self, sid, state):
        self.events.append(('state', sid, state.to_dict()))

    def broadcast_state(self, room_id, state):
        self.events.append(('broadcast', room_id, state.to_dict()))

    def send_error(self, sid, message):
        self.events.append(('error', sid, message))

    def of_kind(self, kind):
        return [e for e in self.events if e[0] == kind]


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def make_sio_client(flask_app):
    clients = []

    def _make():
        test_client = socketio.test_client(flask_app, flask_test_client=flask_app.test_client())
        clients.append(test_client)
        return test_client

    yield _make
    for test_client in clients:
        try:
            if test_client.is_connected():
                test_client.disconnect()
        except Exception:
            pass


@pytest.fixture()
def sio_client(make_sio_client):
    return make_sio_client()


@pytest.fixture()
def store():
    return MemoryRoomStore(ttl_sec=3600)


@pytest.fixture()
def broadcaster():
    return RecordingBroadcaster()


@pytest.fixture()
def rng():
    return ScriptedRng([1, 4, 2, 3, 5, 6])


@pytest.fixture()
def actions(store, broadcaster, rng):
    return RoomActions(
        store,
        broadcaster,
        roll_delay=0,
        join_retry_delays=(0, 0),
        sleep=lambda _delay: None,
        rng=rng,
    )
