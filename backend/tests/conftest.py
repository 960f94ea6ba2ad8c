import os
import sys
import pytest

# Ensure the backend root (containing the `seabattle` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from seabattle import create_app, db, socketio
from seabattle.services.games import Player, create_engine
from seabattle.services.games.board import Orientation, Ship
from seabattle.services.games.notifier import Notifier


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    CORS_ORIGINS = []
    SOCKETIO_NAMESPACE = '/ws'
    ENFORCE_FLEET = False
    FORFEIT_ON_DISCONNECT = True


class RecordingNotifier(Notifier):
    """Keeps every delivery in memory instead of sending it."""

    def __init__(self):
        super().__init__()
        self.sent = []

    def _deliver(self, handle, event, payload):
        self.sent.append((handle, event, payload['data']))

    def events_for(self, handle, event=None):
        return [data for h, e, data in self.sent if h == handle and (event is None or e == event)]

    def names_for(self, handle):
        return [e for h, e, _ in self.sent if h == handle]

    def clear(self):
        self.sent = []


class FakeWinStore:

    def __init__(self):
        self.wins = {}

    def increment_win(self, name):
        self.wins[name] = self.wins.get(name, 0) + 1

    def winners(self):
        ranked = sorted(self.wins.items(), key=lambda item: -item[1])
        return [{'name': name, 'wins': wins} for name, wins in ranked]


class FixedTurn:
    """Stands in for `random` so the first turn is predictable."""

    def __init__(self, first):
        self.first = first

    def randrange(self, n):
        return self.first


ALICE = Player(name='alice', index=1)
BOB = Player(name='bob', index=2)


def ship(x, y, length=1, vertical=False):
    kinds = {1: 'small', 2: 'medium', 3: 'large', 4: 'huge'}
    orientation = Orientation.VERTICAL if vertical else Orientation.HORIZONTAL
    return Ship(x=x, y=y, orientation=orientation, length=length, kind=kinds[length])


@pytest.fixture()
def notifier():
    return RecordingNotifier()


@pytest.fixture()
def win_store():
    return FakeWinStore()


@pytest.fixture()
def engine(notifier, win_store):
    return create_engine(notifier, win_store, rng=FixedTurn(0))


@pytest.fixture()
def game_id(engine):
    """A game between alice (slot 0, 'sid-a') and bob (slot 1, 'sid-b')."""
    room_id = engine.rooms.create_room()
    engine.rooms.join_room(room_id, ALICE, 'sid-a')
    return engine.rooms.join_room(room_id, BOB, 'sid-b').game_id


@pytest.fixture()
def started_game(engine, game_id, notifier):
    """Alice has a length-2 ship at (0,0)-(1,0); bob one at (5,5)-(6,5). Alice moves first."""
    engine.games.place_ships(game_id, 0, [ship(0, 0, 2)])
    engine.games.place_ships(game_id, 1, [ship(5, 5, 2)])
    notifier.clear()
    return game_id


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    with application.app_context():
        # Ensure models are imported so tables are created
        import seabattle.models  # noqa: F401
        db.create_all()
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_factory(flask_app):
    clients = []

    def _connect():
        test_client = socketio.test_client(
            flask_app,
            flask_test_client=flask_app.test_client(),
            namespace='/ws'
        )
        clients.append(test_client)
        return test_client

    yield _connect
    for test_client in clients:
        try:
            test_client.disconnect(namespace='/ws')
        except Exception:
            pass


@pytest.fixture()
def sio_client(sio_factory):
    return sio_factory()

