import os
import sys
from collections import defaultdict
import pytest

# Ensure the backend root (containing the `guessmates` package) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
BACKEND_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if BACKEND_ROOT not in sys.path:
    sys.path.insert(0, BACKEND_ROOT)

from guessmates import create_app, socketio
from guessmates.services.games.broadcast import Broadcaster
from guessmates.services.games.commands import FindOpponent
from guessmates.services.games.facts import FactProvider, NoPlayableCountry
from guessmates.services.games.models import CountryData
from guessmates.services.games.rules import GameRules
from guessmates.services.games.scheduler import ManualScheduler
from guessmates.services.games.server import GameServer


FRANCE = CountryData(
    name='France',
    facts=['Its capital city is Paris.', 'It is located in the continent of Europe.'],
)
JAPAN = CountryData(
    name='Japan',
    facts=[
        'Its capital city is Tokyo.',
        'It is located in the continent of Asia.',
        'One of its official languages is Japanese.',
        'It has a population of approximately 125.8 million people.',
    ],
)


class TestConfig:
    TESTING = True
    SECRET_KEY = os.environ.get('SECRET_KEY', 'test-secret')
    CLIENT_URL = 'http://localhost:3000'
    CORS_ORIGINS = ['http://localhost:3000']
    SOCKETIO_NAMESPACE = '/'
    LOG_LEVEL = 'DEBUG'
    MATCH_START_DELAY_SEC = 0
    REMATCH_WINDOW_SEC = 60


class StaticFacts(FactProvider):
    """Hands out the given countries in rotation."""

    def __init__(self, *countries):
        self.countries = list(countries) or [FRANCE]
        self.calls = 0
        self.fail = False

    def random_country(self):
        if self.fail:
            raise NoPlayableCountry('no data')
        country = self.countries[self.calls % len(self.countries)]
        self.calls += 1
        return CountryData(name=country.name, facts=list(country.facts))


class RecordingBroadcaster(Broadcaster):
    """Delivers events into per-connection inboxes, honouring rooms."""

    def __init__(self):
        self.rooms = defaultdict(set)
        self.inbox = defaultdict(list)

    def to_room(self, game_id, event, payload=None, skip=None):
        for sid in sorted(self.rooms.get(game_id, ())):
            if sid != skip:
                self.inbox[sid].append((event, payload))

    def to_player(self, sid, event, payload=None):
        self.inbox[sid].append((event, payload))

    def join(self, sid, game_id):
        self.rooms[game_id].add(sid)

    def leave(self, sid, game_id):
        self.rooms[game_id].discard(sid)

    def names(self, sid):
        return [name for name, _ in self.inbox[sid]]

    def payloads(self, sid, event):
        return [payload for name, payload in self.inbox[sid] if name == event]

    def last(self, sid, event):
        found = self.payloads(sid, event)
        assert found, f'{sid} never received {event}; got {self.names(sid)}'
        return found[-1]

    def clear(self):
        for messages in self.inbox.values():
            messages.clear()


@pytest.fixture()
def scheduler():
    return ManualScheduler()


@pytest.fixture()
def broadcaster():
    return RecordingBroadcaster()


@pytest.fixture()
def facts():
    return StaticFacts(FRANCE)


@pytest.fixture()
def rules():
    return GameRules()


@pytest.fixture()
def server(broadcaster, facts, scheduler, rules):
    ids = iter(f'game-{n}' for n in range(1, 1000))
    return GameServer(broadcaster, facts, scheduler, rules=rules, id_factory=lambda: next(ids))


@pytest.fixture()
def duel(server):
    """Two connected players, matched, with round 1 running."""
    server.connect('sid-a', 'Alice')
    server.connect('sid-b', 'Bob')
    server.dispatch(FindOpponent('sid-a'))
    server.dispatch(FindOpponent('sid-b'))
    return server.registry.get('game-1')


@pytest.fixture()
def flask_app():
    application = create_app(TestConfig)
    application.extensions['guessmates'].facts = StaticFacts(FRANCE)
    with application.app_context():
        yield application


@pytest.fixture()
def client(flask_app):
    return flask_app.test_client()


@pytest.fixture()
def sio_factory(flask_app):
    clients = []

    def _make(username):
        test_client = socketio.test_client(flask_app, query_string=f'username={username}')
        clients.append(test_client)
        return test_client

    yield _make
    for test_client in clients:
        try:
            if test_client.is_connected():
                test_client.disconnect()
        except RuntimeError:
            pass
