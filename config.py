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

import logging
from pathlib import Path
from typing import Union

from voluptuous import Schema, Required, Optional, Any, All, Match, Range, Url
import voluptuous.error
import aiofiles
import tomlkit
import tomlkit.exceptions


class ConfigurationLoadError(Exception): pass


DEFAULT_TICK_INTERVAL = 1.0


class Config:
    config: tomlkit.TOMLDocument
    config_opened: bool = False

    def __init__(self, config_location: Union[str, Path]):
        self.config_location = Path(config_location)

        self.config_schema = Schema({
            Required('server'): {
                Required('http_endpoint'): Url(),
                Required('ws_endpoint'): All(str, Match(r'^wss?://')),
                Optional('request_timeout', default=10): All(Any(int, float), Range(min=0, min_included=False)),
            },
            Optional('timer', default=dict): {
                Optional('tick_interval', default=DEFAULT_TICK_INTERVAL): All(
                    Any(int, float), Range(min=0, min_included=False)
                ),
            },
        })
        self.settings: dict = {}

    @property
    def http_endpoint(self) -> str:
        return self.settings['server']['http_endpoint'].rstrip('/')

    @property
    def ws_endpoint(self) -> str:
        return self.settings['server']['ws_endpoint'].rstrip('/')

    @property
    def request_timeout(self) -> float:
        return float(self.settings['server']['request_timeout'])

    @property
    def tick_interval(self) -> float:
        return float(self.settings['timer'].get('tick_interval', DEFAULT_TICK_INTERVAL))

    async def initialize(self):
        try:
            async with aiofiles.open(self.config_location, 'r') as config_file:
                file_data = await config_file.read()
                self.config = tomlkit.parse(file_data)
                logging.debug("Loaded Configuration without toml format error")
                logging.debug("Validating against Schema.")
                self.settings = self.config_schema(self.config.unwrap())
                self.config_opened = True
                logging.debug("Validated against Schema.")
        except FileNotFoundError as e:
            logging.exception(e)
            logging.warning(
                f"Could not find {self.config_location}. Copy from .example/config.toml to {self.config_location}")
            raise ConfigurationLoadError() from e
        except IOError as e:
            logging.exception(e)
            logging.warning(f"Could not open file {self.config_location}")
            raise ConfigurationLoadError() from e
        except tomlkit.exceptions.ParseError as e:
            logging.exception(e)
            logging.warning(f"Configuration in {self.config_location} is invalid")
            raise ConfigurationLoadError() from e
        except voluptuous.error.MultipleInvalid as e:
            logging.exception(e)
            logging.warning(f"Configuration in {self.config_location} does not match expected format")
            logging.warning(f"Issue configuration item: {e.path}")
            raise ConfigurationLoadError() from e

        logging.info(f"Configuration loaded.")
