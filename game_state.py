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

import dataclasses
import logging
from typing import Optional

from game_data import (
    ConnectionState,
    GameSession,
    PendingTables,
    Player,
    Terminal,
    TimerConfig,
    WordEntry,
)
from protocol import (
    Closed,
    ComputerMove,
    Frame,
    FrameDecodeError,
    GameInitialized,
    GameOver,
    InputChanged,
    Opened,
    PlayerMoveAccepted,
    PlayerMoveEcho,
    ProtocolError,
    SubmissionRejected,
    SubmitWord,
    TimeExpired,
    TimerUpdate,
    TransportError,
    decode_frame,
)

TIME_UP_MESSAGE = "time's up"


class ProtocolViolation(Exception): pass


def new_session(difficulty: str, timer_config: TimerConfig) -> GameSession:
    return GameSession(
        difficulty=difficulty,
        timer_config=timer_config,
        connection_state=ConnectionState.CONNECTING,
    )


def is_human_turn(session: GameSession) -> bool:
    if session.terminal.over:
        return False
    last = session.last_entry
    return last is None or last.player == Player.COMPUTER


def timer_active(session: GameSession) -> bool:
    """The human's move window is open: the computer played last and the game goes on."""
    last = session.last_entry
    return last is not None and last.player == Player.COMPUTER and not session.terminal.over


def submission_error(session: GameSession, text: str) -> Optional[str]:
    """Reason a submitWord intent must be rejected before it reaches the connection, or None."""
    if session.terminal.over:
        return "The game is over"
    if session.connection_state == ConnectionState.DISCONNECTED:
        return "Not connected to the game server"
    if session.connection_state != ConnectionState.CONNECTED:
        return "Still connecting to the game server"
    if not text.strip():
        return "Enter a word first"
    if not is_human_turn(session):
        return "Wait for the computer to play"
    return None


def reduce(session: GameSession, event) -> GameSession:
    """
    Applies one event and returns the next snapshot. Never mutates `session`.
    Events that are not valid in the current state leave it unchanged.
    """
    if isinstance(event, Frame):
        try:
            decoded = decode_frame(event.raw)
        except FrameDecodeError as e:
            logging.warning(f"Dropping undecodable frame: {e}")
            return session
        if decoded is None:
            return session
        event = decoded

    if isinstance(event, GameInitialized):
        if session.game_id is not None:
            logging.warning(f"Game already initialized as {session.game_id}, ignoring {event.game_id}")
            return session
        return dataclasses.replace(session, game_id=event.game_id, threshold=event.threshold)

    if isinstance(event, Opened):
        if session.connection_state != ConnectionState.CONNECTING:
            return session
        return dataclasses.replace(session, connection_state=ConnectionState.CONNECTED, last_error="")

    if isinstance(event, (Closed, TransportError)):
        return _disconnected(session, event)

    if isinstance(event, SubmissionRejected):
        return dataclasses.replace(session, last_error=event.reason)

    if isinstance(event, SubmitWord):
        # the word itself only enters history once the server echoes it
        reason = submission_error(session, event.text)
        if reason is None:
            return session
        return dataclasses.replace(session, last_error=reason)

    if session.inert:
        logging.debug(f"Session is over, ignoring {type(event).__name__}")
        return session

    if isinstance(event, InputChanged):
        return dataclasses.replace(session, current_input=event.text)

    if isinstance(event, TimeExpired):
        if not timer_active(session):
            logging.debug("Time expired outside of the human's move window, ignoring")
            return session
        logging.info("Turn timer expired")
        return dataclasses.replace(
            session,
            terminal=Terminal(over=True, message=TIME_UP_MESSAGE),
            pending_tables=PendingTables(),
        )

    try:
        return _apply_server_event(session, event)
    except ProtocolViolation as e:
        logging.warning(f"Protocol violation: {e}")
        return dataclasses.replace(session, last_error=str(e))


def _disconnected(session: GameSession, event) -> GameSession:
    session = dataclasses.replace(session, connection_state=ConnectionState.DISCONNECTED)
    if isinstance(event, TransportError):
        return dataclasses.replace(session, last_error=f"Failed to connect to game server: {event.message}")
    message = "Connection to the game server closed"
    if event.reason:
        message = f"{message}: {event.reason}"
    return dataclasses.replace(session, last_error=message)


def _apply_server_event(session: GameSession, event) -> GameSession:
    if isinstance(event, ComputerMove):
        last = session.last_entry
        if last is not None and last.player == Player.COMPUTER:
            raise ProtocolViolation(f"Computer played {event.word!r} out of turn")
        return dataclasses.replace(
            session,
            history=session.history + (WordEntry(event.word, Player.COMPUTER),),
            pending_tables=dataclasses.replace(session.pending_tables, computer=event.similarity_table),
            last_error="",
        )

    if isinstance(event, (PlayerMoveAccepted, PlayerMoveEcho)):
        word = event.similarity_table.for_word
        history = session.history
        last = session.last_entry
        if last is None or last.player == Player.COMPUTER:
            history = history + (WordEntry(word, Player.HUMAN),)
        elif last.word != word:
            raise ProtocolViolation(f"Human move {word!r} arrived out of turn")
        # otherwise a repeated echo of the word already recorded
        return dataclasses.replace(
            session,
            history=history,
            pending_tables=dataclasses.replace(session.pending_tables, human=event.similarity_table),
            current_input="",
            last_error="",
        )

    if isinstance(event, ProtocolError):
        return dataclasses.replace(session, last_error=event.message)

    if isinstance(event, GameOver):
        logging.info(f"Game over: {event.message}")
        return dataclasses.replace(
            session,
            terminal=Terminal(
                over=True,
                message=event.message,
                final_table=event.similarity_table,
                summary=event.summary,
            ),
            pending_tables=PendingTables(),
        )

    if isinstance(event, TimerUpdate):
        return dataclasses.replace(session, server_seconds_left=event.seconds_left)

    raise TypeError(f"Unknown event {event!r}")


def highlighted_side(session: GameSession) -> Optional[Player]:
    """
    Heuristic only: the pending table with more comparisons is shown as the most recent one.
    """
    human, computer = session.pending_tables.human, session.pending_tables.computer
    if human is None and computer is None:
        return None
    if human is None:
        return Player.COMPUTER
    if computer is None:
        return Player.HUMAN
    return Player.HUMAN if len(human.similarities) >= len(computer.similarities) else Player.COMPUTER


def losing_player(session: GameSession) -> Optional[Player]:
    table = session.terminal.final_table
    if table is None:
        return None
    for entry in session.history:
        if entry.word == table.for_word:
            return entry.player
    return None


def word_count(session: GameSession, player: Player) -> int:
    return sum(1 for entry in session.history if entry.player == player)
