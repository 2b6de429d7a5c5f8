import json
import os
import sys

import pytest

# Ensure the project root (containing the flat modules) is on sys.path
CURRENT_DIR = os.path.dirname(__file__)
PROJECT_ROOT = os.path.abspath(os.path.join(CURRENT_DIR, '..'))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)

from config import Config
from game_api import GameInitialization, InitializationFailure
from game_data import TimerConfig
from game_state import new_session, reduce
from protocol import Frame, GameInitialized, Opened


def frame(payload: dict) -> Frame:
    return Frame(json.dumps(payload))


def table(for_word, *rows):
    return {
        "forWord": for_word,
        "similarities": [
            {"previousWord": word, "playedBy": played_by, "similarity": similarity, "tooSimilar": too_similar}
            for word, played_by, similarity, too_similar in rows
        ],
    }


def computer_move(word, *rows):
    return frame({"type": "computerMove", "word": word, "similarityTable": table(word, *rows)})


def player_move(word, *rows):
    return frame({"type": "playerMove", "similarityTable": table(word, *rows)})


def move_accepted(word, *rows):
    return frame({"type": "moveAccepted", "similarityTable": table(word, *rows)})


def connected_session(difficulty="easy", timer_duration=20, threshold=0.8):
    session = new_session(difficulty, TimerConfig.from_duration(timer_duration))
    session = reduce(session, GameInitialized("game-1", threshold))
    return reduce(session, Opened())


class FakeConnection:

    def __init__(self, post_event):
        self.post_event = post_event
        self.opened_with = []
        self.sent = []
        self.accepting = True
        self.closed = False

    def open(self, game_id):
        self.opened_with.append(game_id)

    def send(self, message):
        if not self.accepting:
            return False
        self.sent.append(json.loads(message))
        return True

    async def close(self):
        self.closed = True


class FakeApi:

    def __init__(self, game_id="game-1", threshold=0.8, fail=False):
        self.game_id = game_id
        self.threshold = threshold
        self.fail = fail
        self.requests = []

    async def initialize(self, difficulty, timer_duration):
        self.requests.append((difficulty, timer_duration))
        if self.fail:
            raise InitializationFailure("Failed to initialize game")
        return GameInitialization(self.game_id, self.threshold)

    async def difficulties(self):
        return ["easy", "medium", "hard"]


@pytest.fixture()
def test_config():
    config = Config("config.toml")
    config.settings = {
        'server': {
            'http_endpoint': "http://localhost:8000",
            'ws_endpoint': "ws://localhost:8000",
            'request_timeout': 1,
        },
        'timer': {'tick_interval': 0.01},
    }
    return config


@pytest.fixture()
def manual_tick_config(test_config):
    # the countdown task never wakes up during a test, ticks are driven by hand
    test_config.settings['timer'] = {'tick_interval': 3600}
    return test_config


@pytest.fixture()
def fake_api():
    return FakeApi()


@pytest.fixture()
def connections():
    return []


@pytest.fixture()
def connection_factory(connections):
    def factory(post_event):
        connection = FakeConnection(post_event)
        connections.append(connection)
        return connection
    return factory
