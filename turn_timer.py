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
import logging
from typing import Callable, Optional


class TurnTimer:
    """
    Counts down the human's move window one tick at a time.

    The countdown only runs while the timer is active. Deactivating it cancels the pending
    tick, and the remaining time is kept until reset(). When the count reaches zero
    `on_expire` is called exactly once and the timer stops for good.

    With `tick_interval=None` no countdown task is scheduled and ticks are driven through tick().
    """

    def __init__(self, duration: int, on_expire: Callable[[], None], tick_interval: Optional[float] = 1.0):
        if duration <= 0:
            raise ValueError(f"Timer duration must be positive, got {duration}")
        self._duration = duration
        self._remaining = duration
        self._on_expire = on_expire
        self._tick_interval = tick_interval
        self._active = False
        self._expired = False
        self._task: Optional[asyncio.Task] = None

    @property
    def duration(self) -> int:
        return self._duration

    @property
    def remaining(self) -> int:
        return self._remaining

    @property
    def active(self) -> bool:
        return self._active

    @property
    def expired(self) -> bool:
        return self._expired

    def set_active(self, active: bool) -> None:
        if active == self._active:
            return
        self._active = active
        logging.debug(f"Turn timer {'started' if active else 'paused'} with {self._remaining}s left")
        self._reschedule()

    def reset(self) -> None:
        self._remaining = self._duration
        self._expired = False
        self._reschedule()

    def stop(self) -> None:
        self._active = False
        self._cancel()

    def tick(self) -> None:
        if not self._active or self._expired:
            return
        self._remaining -= 1
        if self._remaining > 0:
            return
        self._remaining = 0
        self._expired = True
        self._active = False
        logging.debug("Turn timer expired")
        self._on_expire()

    def _reschedule(self):
        self._cancel()
        if self._active and not self._expired and self._tick_interval is not None:
            self._task = asyncio.get_running_loop().create_task(self._countdown())

    def _cancel(self):
        if self._task is not None:
            self._task.cancel()
            self._task = None

    async def _countdown(self):
        while self._active and not self._expired:
            await asyncio.sleep(self._tick_interval)
            self.tick()
