import asyncio

import pytest
import requests

from game_api import GameApi, InitializationFailure


class FakeResponse:

    def __init__(self, payload, status_code=200):
        self._payload = payload
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")

    def json(self):
        if isinstance(self._payload, Exception):
            raise self._payload
        return self._payload


class FakeHttpSession:

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    def get(self, url, **kwargs):
        self.calls.append(("GET", url, kwargs))
        if self.error:
            raise self.error
        return self.response

    def post(self, url, **kwargs):
        self.calls.append(("POST", url, kwargs))
        if self.error:
            raise self.error
        return self.response


def test_initialize_game():
    http = FakeHttpSession(FakeResponse({"game_id": "abc123", "threshold": 0.82}))
    api = GameApi("http://localhost:8000/", timeout=3, session=http)
    initialization = asyncio.run(api.initialize("easy", 20))
    assert initialization.game_id == "abc123"
    assert initialization.threshold == pytest.approx(0.82)
    method, url, kwargs = http.calls[0]
    assert method == "POST"
    assert url == "http://localhost:8000/initialize-game/easy"
    assert kwargs["json"] == {"timerDuration": 20}
    assert kwargs["timeout"] == 3


def test_unlimited_timer_is_sent_as_null():
    http = FakeHttpSession(FakeResponse({"game_id": 7, "threshold": 1}))
    initialization = GameApi("http://localhost:8000", session=http).initialize_game("very hard", None)
    assert initialization.game_id == "7"
    assert http.calls[0][1].endswith("/initialize-game/very%20hard")
    assert http.calls[0][2]["json"] == {"timerDuration": None}


@pytest.mark.parametrize("http", [
    FakeHttpSession(error=requests.ConnectionError("refused")),
    FakeHttpSession(FakeResponse({"detail": "nope"}, status_code=500)),
    FakeHttpSession(FakeResponse({"threshold": 0.8})),
    FakeHttpSession(FakeResponse({"game_id": "", "threshold": 0.8})),
    FakeHttpSession(FakeResponse({"game_id": "abc", "threshold": "high"})),
    FakeHttpSession(FakeResponse(ValueError("no json"))),
])
def test_initialization_failures(http):
    with pytest.raises(InitializationFailure):
        GameApi("http://localhost:8000", session=http).initialize_game("easy", 10)


def test_difficulties():
    http = FakeHttpSession(FakeResponse({"difficulties": ["easy", "medium", "hard"]}))
    api = GameApi("http://localhost:8000", session=http)
    assert asyncio.run(api.difficulties()) == ["easy", "medium", "hard"]
    assert http.calls[0][1] == "http://localhost:8000/difficulties"


def test_difficulties_failure():
    http = FakeHttpSession(FakeResponse({"levels": []}))
    with pytest.raises(InitializationFailure):
        GameApi("http://localhost:8000", session=http).fetch_difficulties()
