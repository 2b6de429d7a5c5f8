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

from typing import Optional

from rich.console import Console, Group
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from game_data import GameSession, Player, SimilarityTable
from game_state import highlighted_side, losing_player, word_count
from scoring import determine_winner, score

PLAYER_STYLES = {
    Player.HUMAN: "green",
    Player.COMPUTER: "blue",
}


def render_chain(session: GameSession, losing_word: Optional[str] = None) -> Text:
    chain = Text()
    for index, entry in enumerate(session.history, start=1):
        style = PLAYER_STYLES[entry.player]
        if losing_word is not None and entry.word == losing_word:
            style = f"bold {style} on red"
        chain.append(f"{index}. {entry.word} ({entry.player.value})", style=style)
        chain.append("  ")
    return chain


def render_table(table: SimilarityTable, title: str, border_style: str = "white") -> Table:
    rendered = Table(title=f"{title}: {table.for_word}", border_style=border_style)
    rendered.add_column("Previous Word")
    rendered.add_column("Played By")
    rendered.add_column("Similarity", justify="right")
    for entry in table.similarities:
        similarity = "n/a" if entry.similarity is None else f"{entry.similarity:.3f}"
        rendered.add_row(
            entry.previous_word,
            entry.played_by.value if entry.played_by else "?",
            similarity,
            style="bold red" if entry.too_similar else None,
        )
    return rendered


def render_session(session: GameSession) -> Group:
    threshold = "?" if session.threshold is None else f"{session.threshold:.2f}"
    parts = [
        Text(f"{session.difficulty.upper()}  threshold {threshold}  timer {session.timer_config.label}", style="bold"),
        Panel(render_chain(session), title="Word Chain"),
    ]
    if session.last_error:
        parts.append(Text(session.last_error, style="bold red"))

    highlighted = highlighted_side(session)
    if session.pending_tables.human is not None:
        parts.append(render_table(
            session.pending_tables.human, "Your Word Similarity",
            "green" if highlighted == Player.HUMAN else "white"
        ))
    if session.pending_tables.computer is not None:
        parts.append(render_table(
            session.pending_tables.computer, "Computer's Word Similarity",
            "blue" if highlighted == Player.COMPUTER else "white"
        ))
    return Group(*parts)


def render_summary(session: GameSession) -> Group:
    terminal = session.terminal
    winner = determine_winner(terminal.message)
    final_table = terminal.final_table
    timer_note = (
        "Playing without timer" if session.timer_config.unlimited
        else f"Playing with {session.timer_config.label} timer (bonus multiplier applied)"
    )
    parts = [
        Panel(Text(f"Game Over: {terminal.message}", style="bold red", justify="center")),
        Text(f"Winner: {'You' if winner == Player.HUMAN else 'Computer'}", style=PLAYER_STYLES[winner]),
        Text(
            f"Your words: {word_count(session, Player.HUMAN)}  "
            f"Computer's words: {word_count(session, Player.COMPUTER)}"
        ),
        Text(f"Your Score: {score(session.history, session.timer_config)} points", style="bold green"),
        Text(timer_note),
        Panel(render_chain(session, final_table.for_word if final_table else None), title="Word Chain"),
    ]
    if final_table is not None and final_table.similarities:
        played_by = losing_player(session)
        parts.append(render_table(
            final_table,
            f"Game-Ending Word (played by {played_by.value if played_by else 'unknown'})",
            "red"
        ))
    return Group(*parts)


class ConsoleView:

    def __init__(self, console: Console):
        self._console = console
        self._last_key = None

    def show(self, session: GameSession):
        # input edits alone do not redraw
        key = (
            len(session.history), session.pending_tables, session.last_error,
            session.terminal.over, session.connection_state
        )
        if key == self._last_key:
            return
        self._last_key = key
        if session.terminal.over:
            self._console.print(render_summary(session))
        else:
            self._console.print(render_session(session))
