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
import contextlib
import logging
from typing import Callable, List, Optional

from config import Config
from game_api import GameApi
from game_data import GameSession, TimerConfig
from game_state import new_session, reduce, submission_error, timer_active
from protocol import (
    GameInitialized,
    InputChanged,
    SubmissionRejected,
    SubmitWord,
    TimeExpired,
    encode_submission,
)
from scoring import score
from session_connection import SessionConnection
from turn_timer import TurnTimer


class SessionManager:
    """
    Owns a single game: its state, its connection and its turn timer.

    Connection events, timer expiry and user intents are queued and applied one at a time by
    the reducer in game_state. Intents resolve to the snapshot produced by applying them.
    Once the game is over or the connection is gone the manager is done; a new game needs a
    new manager.
    """

    def __init__(self, config: Config, api: GameApi,
                 connection_factory: Optional[Callable[[Callable[[object], None]], SessionConnection]] = None):
        self._config = config
        self._api = api
        self._connection_factory = connection_factory or (
            lambda post_event: SessionConnection(self._config.ws_endpoint, post_event)
        )
        self._session: Optional[GameSession] = None
        self._connection: Optional[SessionConnection] = None
        self._timer: Optional[TurnTimer] = None
        self._events: asyncio.Queue = asyncio.Queue()
        self._pump_task: Optional[asyncio.Task] = None
        self._listeners: List[Callable[[GameSession], None]] = []
        self._finished = asyncio.Event()

    @property
    def session(self) -> Optional[GameSession]:
        return self._session

    @property
    def timer(self) -> Optional[TurnTimer]:
        return self._timer

    @property
    def score(self) -> int:
        if self._session is None:
            return 0
        return score(self._session.history, self._session.timer_config)

    def subscribe(self, listener: Callable[[GameSession], None]) -> None:
        self._listeners.append(listener)

    async def start_game(self, difficulty: str, timer_duration: Optional[int]) -> GameSession:
        if self._session is not None:
            raise RuntimeError("This manager already started a game")
        timer_config = TimerConfig.from_duration(timer_duration)

        # raises InitializationFailure, no session exists in that case
        initialization = await self._api.initialize(difficulty, timer_config.duration)

        logging.info(f"Starting {difficulty} game {initialization.game_id} with timer {timer_config.label}")
        self._session = reduce(
            new_session(difficulty, timer_config),
            GameInitialized(initialization.game_id, initialization.threshold)
        )
        if timer_config.duration is not None:
            self._timer = TurnTimer(timer_config.duration, self._on_time_expired, self._config.tick_interval)

        self._pump_task = asyncio.get_running_loop().create_task(self._pump())
        self._connection = self._connection_factory(self.post_event)
        self._connection.open(initialization.game_id)
        self._notify()
        return self._session

    def post_event(self, event) -> None:
        self._events.put_nowait((event, None))

    async def submit_word(self, text: str) -> GameSession:
        return await self._post(SubmitWord(text))

    async def set_input(self, text: str) -> GameSession:
        return await self._post(InputChanged(text))

    async def time_expired(self) -> GameSession:
        return await self._post(TimeExpired())

    async def wait_finished(self) -> GameSession:
        await self._finished.wait()
        return self._session

    async def drain(self) -> GameSession:
        await self._events.join()
        return self._session

    async def close(self):
        if self._timer is not None:
            self._timer.stop()
        if self._connection is not None:
            await self._connection.close()
        if self._pump_task is not None:
            await self._events.join()
            self._pump_task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._pump_task
            self._pump_task = None
        logging.debug("Session closed")

    async def _post(self, event) -> GameSession:
        if self._session is None:
            raise RuntimeError("No game has been started")
        future = asyncio.get_running_loop().create_future()
        self._events.put_nowait((event, future))
        return await future

    def _on_time_expired(self):
        self.post_event(TimeExpired())

    async def _pump(self):
        while True:
            event, future = await self._events.get()
            try:
                self._handle(event)
            except Exception as e:
                if future is None:
                    logging.exception(e)
                elif not future.done():
                    future.set_exception(e)
                continue
            finally:
                self._events.task_done()
            if future is not None and not future.done():
                future.set_result(self._session)

    def _handle(self, event):
        if isinstance(event, SubmitWord):
            reason = submission_error(self._session, event.text)
            if reason is None:
                if not self._connection.send(encode_submission(event.text)):
                    event = SubmissionRejected("Not connected to the game server")
                else:
                    logging.info(f"Submitted {event.text!r}")
                    if self._timer is not None:
                        self._timer.reset()
            else:
                logging.info(f"Rejected {event.text!r}: {reason}")

        self._session = reduce(self._session, event)
        self._sync_timer()
        if self._session.inert:
            self._finished.set()
        self._notify()

    def _sync_timer(self):
        if self._timer is None:
            return
        if self._session.inert:
            self._timer.stop()
            return
        if self._timer.expired:
            # the expiry lost the race against a move and did not end the game
            self._timer.reset()
        self._timer.set_active(timer_active(self._session))

    def _notify(self):
        for listener in self._listeners:
            listener(self._session)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
