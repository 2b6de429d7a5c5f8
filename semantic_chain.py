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
import os
from typing import List, Optional, Tuple

from config import Config, ConfigurationLoadError
from console_view import ConsoleView
from game_api import GameApi, InitializationFailure
from game_data import TIMER_OPTIONS
from logger import console, setup_logging
from session_manager import SessionManager


class SemanticChain:

    def __init__(self, config: Config, api: GameApi):
        self._config = config
        self._api = api
        self._view = ConsoleView(console)

    async def _ask(self, prompt: str) -> str:
        return (await asyncio.to_thread(console.input, prompt)).strip()

    async def _choose(self, prompt: str, choices: List[str]) -> int:
        for index, choice in enumerate(choices, start=1):
            console.print(f"  {index}. {choice}")
        while True:
            answer = await self._ask(prompt)
            if answer.isdigit() and 1 <= int(answer) <= len(choices):
                return int(answer) - 1
            if answer in choices:
                return choices.index(answer)
            console.print(f"Pick one of 1-{len(choices)}", style="red")

    async def select_game(self, difficulties: List[str]) -> Tuple[str, Optional[int]]:
        console.print("[bold]Select Timer[/bold]")
        timer = TIMER_OPTIONS[await self._choose("timer> ", [option.label for option in TIMER_OPTIONS])]
        console.print("[bold]Select Difficulty[/bold]")
        difficulty = difficulties[await self._choose("difficulty> ", difficulties)]
        return difficulty, timer.duration

    async def begin(self):
        console.print("[bold]Semantic Meaning Game[/bold]")
        difficulties = await self._api.difficulties()
        if not difficulties:
            logging.error("Server offers no difficulties")
            return
        difficulty, timer_duration = await self.select_game(difficulties)

        async with SessionManager(self._config, self._api) as manager:
            manager.subscribe(self._view.show)
            await manager.start_game(difficulty, timer_duration)
            finished_task = asyncio.create_task(manager.wait_finished())
            try:
                while True:
                    word_task = asyncio.create_task(self._ask("word> "))
                    done, pending = await asyncio.wait(
                        [word_task, finished_task],
                        return_when=asyncio.FIRST_COMPLETED
                    )
                    if finished_task in done:
                        console.print("Press Enter to exit")
                        break
                    word = word_task.result()
                    await manager.set_input(word)
                    await manager.submit_word(word)
            except asyncio.CancelledError:
                logging.info("Cancelled ...")
            finally:
                finished_task.cancel()


async def main():
    logging.info("Starting semantic chain ...")

    config = Config(os.environ.get("SEMANTIC_CHAIN_CONFIG", "./config.toml"))

    try:
        await config.initialize()

        api = GameApi(config.http_endpoint, config.request_timeout)
        await SemanticChain(config, api).begin()
    except ConfigurationLoadError:
        logging.error("Could not load configuration. Exiting")
        return
    except InitializationFailure as e:
        logging.error(f"Could not start a game: {e}")
        return


def run():
    setup_logging()
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logging.info("Cancelled ...")


if __name__ == "__main__":
    run()
