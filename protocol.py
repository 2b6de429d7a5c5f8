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

"""
Wire format of the game channel, and every event the session reducer understands.

Inbound frames are JSON objects, one variant per frame, discriminated by "type":
  computerMove  {word, similarityTable}
  playerMove    {similarityTable}            server echo of the human's word
  moveAccepted  {similarityTable}            human's word passed the threshold check
  error         {message}
  gameOver      {message, similarityTable?, gameSummary?}
  timerUpdate   {secondsLeft}
Outbound frames are {"word": <text>}.

An older front end filed the moveAccepted table under the computer's side. Here it always
belongs to the human, the same as playerMove.
"""

import dataclasses
import json
import logging
from typing import Optional, Union

from voluptuous import Schema, Required, Optional as OptionalKey, Any, All, In, Length, Lower, Range, ALLOW_EXTRA
import voluptuous.error

from game_data import Player, SimilarityEntry, SimilarityTable, GameSummary, WordEntry


class FrameDecodeError(Exception): pass


# inbound server events

@dataclasses.dataclass(frozen=True)
class ComputerMove:
    word: str
    similarity_table: SimilarityTable


@dataclasses.dataclass(frozen=True)
class PlayerMoveAccepted:
    similarity_table: SimilarityTable


@dataclasses.dataclass(frozen=True)
class PlayerMoveEcho:
    similarity_table: SimilarityTable


@dataclasses.dataclass(frozen=True)
class ProtocolError:
    message: str


@dataclasses.dataclass(frozen=True)
class GameOver:
    message: str
    similarity_table: Optional[SimilarityTable] = None
    summary: Optional[GameSummary] = None


@dataclasses.dataclass(frozen=True)
class TimerUpdate:
    seconds_left: int


# connection events

@dataclasses.dataclass(frozen=True)
class Opened:
    pass


@dataclasses.dataclass(frozen=True)
class Closed:
    reason: str = ""


@dataclasses.dataclass(frozen=True)
class TransportError:
    message: str


@dataclasses.dataclass(frozen=True)
class Frame:
    raw: Union[str, bytes]


# local intents

@dataclasses.dataclass(frozen=True)
class GameInitialized:
    game_id: str
    threshold: float


@dataclasses.dataclass(frozen=True)
class SubmitWord:
    text: str


@dataclasses.dataclass(frozen=True)
class InputChanged:
    text: str


@dataclasses.dataclass(frozen=True)
class SubmissionRejected:
    reason: str


@dataclasses.dataclass(frozen=True)
class TimeExpired:
    pass


ServerEvent = Union[ComputerMove, PlayerMoveAccepted, PlayerMoveEcho, ProtocolError, GameOver, TimerUpdate]


_player = All(str, Lower, In([player.value for player in Player]))

_similarity_entry = {
    Required('previousWord'): str,
    OptionalKey('playedBy', default=None): Any(None, _player),
    OptionalKey('similarity', default=None): Any(None, int, float),
    Required('tooSimilar'): bool,
}

_similarity_table = {
    Required('forWord'): All(str, Length(min=1)),
    Required('similarities'): [_similarity_entry],
}

_game_summary = {
    Required('totalWords'): All(int, Range(min=0)),
    OptionalKey('wordHistory', default=list): [{
        Required('word'): str,
        Required('player'): _player,
    }],
}

_schemas = {
    "computerMove": Schema({
        Required('word'): All(str, Length(min=1)),
        Required('similarityTable'): _similarity_table,
    }, extra=ALLOW_EXTRA),
    "playerMove": Schema({
        Required('similarityTable'): _similarity_table,
    }, extra=ALLOW_EXTRA),
    "moveAccepted": Schema({
        Required('similarityTable'): _similarity_table,
    }, extra=ALLOW_EXTRA),
    "error": Schema({
        Required('message'): str,
    }, extra=ALLOW_EXTRA),
    "gameOver": Schema({
        Required('message'): str,
        OptionalKey('similarityTable', default=None): Any(None, _similarity_table),
        OptionalKey('gameSummary', default=None): Any(None, _game_summary),
    }, extra=ALLOW_EXTRA),
    "timerUpdate": Schema({
        Required('secondsLeft'): All(int, Range(min=0)),
    }, extra=ALLOW_EXTRA),
}


def _table(data: dict) -> SimilarityTable:
    return SimilarityTable(
        for_word=data['forWord'],
        similarities=tuple(
            SimilarityEntry(
                previous_word=entry['previousWord'],
                played_by=None if entry['playedBy'] is None else Player(entry['playedBy']),
                similarity=None if entry['similarity'] is None else float(entry['similarity']),
                too_similar=entry['tooSimilar'],
            )
            for entry in data['similarities']
        )
    )


def _summary(data: Optional[dict]) -> Optional[GameSummary]:
    if data is None:
        return None
    return GameSummary(
        total_words=data['totalWords'],
        word_history=tuple(WordEntry(entry['word'], Player(entry['player'])) for entry in data['wordHistory']),
    )


def _build(tag: str, packet: dict) -> ServerEvent:
    if tag == "computerMove":
        return ComputerMove(packet['word'], _table(packet['similarityTable']))
    elif tag == "playerMove":
        return PlayerMoveEcho(_table(packet['similarityTable']))
    elif tag == "moveAccepted":
        return PlayerMoveAccepted(_table(packet['similarityTable']))
    elif tag == "error":
        return ProtocolError(packet['message'])
    elif tag == "gameOver":
        table = packet['similarityTable']
        return GameOver(
            message=packet['message'],
            similarity_table=None if table is None else _table(table),
            summary=_summary(packet['gameSummary']),
        )
    return TimerUpdate(packet['secondsLeft'])


def decode_frame(raw: Union[str, bytes]) -> Optional[ServerEvent]:
    """
    Returns the event carried by one inbound frame, or None for a tag this client does not know.
    Raises FrameDecodeError for anything else that cannot be understood.
    """
    if isinstance(raw, bytes):
        try:
            raw = raw.decode("utf-8")
        except UnicodeDecodeError as e:
            raise FrameDecodeError("Frame is not valid UTF-8") from e

    try:
        packet = json.loads(raw)
    except json.JSONDecodeError as e:
        raise FrameDecodeError("Frame is not JSON") from e

    if not isinstance(packet, dict) or not isinstance(packet.get("type"), str):
        raise FrameDecodeError("Frame has no type")

    tag = packet["type"]
    if tag not in _schemas:
        logging.debug(f"Ignoring frame with unknown type {tag!r}")
        return None

    try:
        packet = _schemas[tag](packet)
    except voluptuous.error.MultipleInvalid as e:
        raise FrameDecodeError(f"Malformed {tag} frame: {e}") from e

    return _build(tag, packet)


def encode_submission(word: str) -> str:
    return json.dumps({"word": word})
