"""
SemanticChain
Copyright (C) 2024 thiccaxe

This program is free software: you can redistribute it and/or modify
it under the terms of the GNU Affero General Public License as published
by the Free Software Foundation, either version 3 of the License, or
(at your option) any later version.

This program is distributed in the hope that it will be useful,
but WITHOUT ANY WARRANTY; without even the implied warranty of
MERCHANTABILITY or FITNESS FOR A PARTICULAR PURPOSE.  See the
GNU Affero General Public License for more details.

You should have received a copy of the GNU Affero General Public License
along with this program.  If not, see <https://www.gnu.org/licenses/>.
"""

import asyncio
import dataclasses
import logging
from typing import List, Optional
from urllib.parse import quote

import requests
from voluptuous import Schema, Required, Any, All, Coerce, Length, ALLOW_EXTRA
import voluptuous.error


class InitializationFailure(Exception): pass


@dataclasses.dataclass(frozen=True)
class GameInitialization:
    game_id: str
    threshold: float


class GameApi:
    """
    HTTP side of the game server: the difficulty catalog and game initialization.
    Requests are blocking, the coroutine wrappers run them off the event loop.
    """

    def __init__(self, http_endpoint: str, timeout: float = 10, session: Optional[requests.Session] = None):
        self._http_endpoint = http_endpoint.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()

        self.difficulties_schema = Schema({
            Required('difficulties'): [str],
        }, extra=ALLOW_EXTRA)
        self.initialization_schema = Schema({
            Required('game_id'): All(Any(str, int), Coerce(str), Length(min=1)),
            Required('threshold'): All(Any(int, float), Coerce(float)),
        }, extra=ALLOW_EXTRA)

    def fetch_difficulties(self) -> List[str]:
        try:
            response = self._session.get(f"{self._http_endpoint}/difficulties", timeout=self._timeout)
            response.raise_for_status()
            data = self.difficulties_schema(response.json())
        except requests.RequestException as e:
            logging.exception(e)
            raise InitializationFailure("Could not load difficulties") from e
        except (ValueError, voluptuous.error.MultipleInvalid) as e:
            logging.exception(e)
            raise InitializationFailure("Server sent an invalid difficulty list") from e
        logging.debug(f"Difficulties: {data['difficulties']}")
        return data['difficulties']

    def initialize_game(self, difficulty: str, timer_duration: Optional[int]) -> GameInitialization:
        url = f"{self._http_endpoint}/initialize-game/{quote(difficulty, safe='')}"
        try:
            response = self._session.post(url, json={"timerDuration": timer_duration}, timeout=self._timeout)
            response.raise_for_status()
            payload = response.json()
        except requests.RequestException as e:
            logging.exception(e)
            raise InitializationFailure("Failed to initialize game") from e
        except ValueError as e:
            logging.exception(e)
            raise InitializationFailure("Failed to initialize game") from e

        if not isinstance(payload, dict) or not payload.get("game_id"):
            raise InitializationFailure("No game ID received")
        try:
            data = self.initialization_schema(payload)
        except voluptuous.error.MultipleInvalid as e:
            logging.warning(f"Issue in initialization response: {e.path}")
            raise InitializationFailure("Server sent an invalid game initialization") from e

        logging.info(f"Initialized game {data['game_id']} with threshold {data['threshold']}")
        return GameInitialization(data['game_id'], data['threshold'])

    async def difficulties(self) -> List[str]:
        return await asyncio.to_thread(self.fetch_difficulties)

    async def initialize(self, difficulty: str, timer_duration: Optional[int]) -> GameInitialization:
        return await asyncio.to_thread(self.initialize_game, difficulty, timer_duration)
