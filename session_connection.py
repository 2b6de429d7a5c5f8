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
from typing import Callable, Optional, Set

import websockets
import websockets.exceptions
from websockets.asyncio.client import ClientConnection

from protocol import Closed, Frame, Opened, TransportError


class TransportFailure(Exception): pass


class SessionConnection:
    """
    The one realtime channel of a game session. Everything it observes is reported through
    `post_event` as Opened, Frame, Closed or TransportError; it never reconnects.
    """

    def __init__(self, ws_endpoint: str, post_event: Callable[[object], None]):
        self._ws_endpoint = ws_endpoint.rstrip("/")
        self._post_event = post_event
        self._websocket: Optional[ClientConnection] = None
        self._task: Optional[asyncio.Task] = None
        self._send_tasks: Set[asyncio.Task] = set()
        self._closing = asyncio.Event()

    def game_uri(self, game_id: str) -> str:
        return f"{self._ws_endpoint}/game/{game_id}"

    @property
    def opened(self) -> bool:
        return self._websocket is not None

    def open(self, game_id: str) -> None:
        if self._task is not None:
            raise TransportFailure("Connection was already opened for this session")
        uri = self.game_uri(game_id)
        logging.debug(f"Opening game connection {uri}")
        self._task = asyncio.get_running_loop().create_task(self._run(uri))

    async def _run(self, uri: str):
        closing_wait_task = asyncio.create_task(self._closing.wait())
        try:
            async with websockets.connect(uri) as websocket:
                self._websocket = websocket
                logging.info("Game connection established")
                self._post_event(Opened())
                while True:
                    recv_task = asyncio.create_task(websocket.recv())
                    done, pending = await asyncio.wait(
                        [recv_task, closing_wait_task],
                        return_when=asyncio.FIRST_COMPLETED
                    )

                    # closed by us
                    if self._closing.is_set():
                        recv_task.cancel()
                        self._websocket = None
                        await websocket.close()
                        self._post_event(Closed("closed by client"))
                        return

                    message = recv_task.result()
                    logging.debug(f"Received frame: {message!r}")
                    self._post_event(Frame(message))
        except websockets.exceptions.ConnectionClosedOK as e:
            logging.info("Game connection closed by server")
            self._post_event(Closed(str(e)))
        except websockets.exceptions.ConnectionClosed as e:
            logging.warning(f"Game connection lost: {e}")
            self._post_event(TransportError(str(e)))
        except (OSError, asyncio.TimeoutError, websockets.exceptions.InvalidURI,
                websockets.exceptions.InvalidHandshake) as e:
            logging.exception(e)
            self._post_event(TransportError(str(e) or type(e).__name__))
        finally:
            self._websocket = None
            closing_wait_task.cancel()

    def send(self, message: str) -> bool:
        """Fire-and-forget. Returns False when there is no open channel to send on."""
        if self._websocket is None:
            logging.debug("Wanted to send data when game connection not open")
            return False
        task = asyncio.get_running_loop().create_task(self._send(self._websocket, message))
        self._send_tasks.add(task)
        task.add_done_callback(self._send_tasks.discard)
        return True

    async def _send(self, websocket, message: str):
        try:
            await websocket.send(message)
            logging.debug(f"Sent frame: {message}")
        except websockets.exceptions.ConnectionClosed:
            # reported by the receive loop
            logging.debug("Could not send, game connection already closed")

    async def close(self):
        if self._task is None:
            return
        self._closing.set()
        if self._websocket is None and not self._task.done():
            self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
