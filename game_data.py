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
import enum
from typing import Optional, Tuple


class Player(enum.Enum):
    HUMAN = "human"
    COMPUTER = "computer"


class ConnectionState(enum.Enum):
    DISCONNECTED = "disconnected"
    CONNECTING = "connecting"
    CONNECTED = "connected"


@dataclasses.dataclass(frozen=True)
class TimerConfig:
    duration: Optional[int]  # seconds, None is unlimited
    label: str

    @property
    def unlimited(self) -> bool:
        return self.duration is None

    @staticmethod
    def from_duration(duration: Optional[int]) -> "TimerConfig":
        for option in TIMER_OPTIONS:
            if option.duration == duration:
                return option
        raise ValueError(f"Unsupported timer duration {duration!r}")


TIMER_OPTIONS = (
    TimerConfig(10, "10s"),
    TimerConfig(20, "20s"),
    TimerConfig(30, "30s"),
    TimerConfig(None, "Unlimited"),
)


@dataclasses.dataclass(frozen=True)
class WordEntry:
    word: str
    player: Player


@dataclasses.dataclass(frozen=True)
class SimilarityEntry:
    previous_word: str
    played_by: Optional[Player]  # not every server reports it
    similarity: Optional[float]  # None when the server could not score the pair
    too_similar: bool


@dataclasses.dataclass(frozen=True)
class SimilarityTable:
    for_word: str
    similarities: Tuple[SimilarityEntry, ...] = ()


@dataclasses.dataclass(frozen=True)
class GameSummary:
    total_words: int
    word_history: Tuple[WordEntry, ...] = ()


@dataclasses.dataclass(frozen=True)
class PendingTables:
    human: Optional[SimilarityTable] = None
    computer: Optional[SimilarityTable] = None


@dataclasses.dataclass(frozen=True)
class Terminal:
    over: bool = False
    message: str = ""
    final_table: Optional[SimilarityTable] = None
    summary: Optional[GameSummary] = None


@dataclasses.dataclass(frozen=True)
class GameSession:
    """
    Immutable snapshot of one game, replaced wholesale by the reducer in game_state.
    """
    difficulty: str
    timer_config: TimerConfig
    connection_state: ConnectionState = ConnectionState.DISCONNECTED
    game_id: Optional[str] = None
    threshold: Optional[float] = None
    history: Tuple[WordEntry, ...] = ()
    pending_tables: PendingTables = PendingTables()
    current_input: str = ""
    last_error: str = ""
    terminal: Terminal = Terminal()
    server_seconds_left: Optional[int] = None

    @property
    def last_entry(self) -> Optional[WordEntry]:
        return self.history[-1] if self.history else None

    @property
    def inert(self) -> bool:
        return self.terminal.over or self.connection_state == ConnectionState.DISCONNECTED
