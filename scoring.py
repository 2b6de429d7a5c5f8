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

from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

from game_data import Player, TimerConfig, WordEntry

POINTS_PER_WORD = 100
BONUS = Decimal("1.65")
TIMER_MULTIPLIERS = {
    10: Decimal("3"),
    20: Decimal("2"),
    30: Decimal("1.5"),
}


def timer_multiplier(timer_config: TimerConfig) -> Decimal:
    return TIMER_MULTIPLIERS.get(timer_config.duration, Decimal("1"))


def score(history: Iterable[WordEntry], timer_config: TimerConfig) -> int:
    """
    100 points per human word, scaled by the timer multiplier, plus a 65% bonus.
    Decimal keeps the result exact; only the final product is rounded, half away from zero.
    """
    human_words = sum(1 for entry in history if entry.player == Player.HUMAN)
    raw = human_words * POINTS_PER_WORD * timer_multiplier(timer_config)
    return int((raw * BONUS).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def determine_winner(game_over_message: str) -> Player:
    # the server only tells us who lost through the wording of its message
    if "computer couldn't" in game_over_message.lower():
        return Player.HUMAN
    return Player.COMPUTER
