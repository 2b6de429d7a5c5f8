import asyncio

import pytest

from config import Config, ConfigurationLoadError, DEFAULT_TICK_INTERVAL

VALID = """
[server]
http_endpoint = "http://localhost:8000/"
ws_endpoint = "ws://localhost:8000"
request_timeout = 5

[timer]
tick_interval = 0.5
"""


def load(path):
    config = Config(path)
    asyncio.run(config.initialize())
    return config


def test_loads_valid_configuration(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text(VALID)
    config = load(path)
    assert config.http_endpoint == "http://localhost:8000"
    assert config.ws_endpoint == "ws://localhost:8000"
    assert config.request_timeout == 5
    assert config.tick_interval == 0.5


def test_timer_section_is_optional(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text('[server]\nhttp_endpoint = "http://example.com"\nws_endpoint = "wss://example.com"\n')
    config = load(path)
    assert config.tick_interval == DEFAULT_TICK_INTERVAL
    assert config.request_timeout == 10


def test_missing_file(tmp_path):
    with pytest.raises(ConfigurationLoadError):
        load(tmp_path / "missing.toml")


def test_invalid_toml(tmp_path):
    path = tmp_path / "config.toml"
    path.write_text("[server\nhttp_endpoint = ")
    with pytest.raises(ConfigurationLoadError):
        load(path)


@pytest.mark.parametrize("body", [
    '[server]\nws_endpoint = "ws://localhost:8000"\n',
    '[server]\nhttp_endpoint = "http://localhost:8000"\nws_endpoint = "http://localhost:8000"\n',
    '[server]\nhttp_endpoint = "http://localhost:8000"\nws_endpoint = "ws://localhost:8000"\nrequest_timeout = 0\n',
    '[server]\nhttp_endpoint = "http://localhost:8000"\nws_endpoint = "ws://localhost:8000"\n[timer]\ntick_interval = -1\n',
])
def test_schema_violations(tmp_path, body):
    path = tmp_path / "config.toml"
    path.write_text(body)
    with pytest.raises(ConfigurationLoadError):
        load(path)
