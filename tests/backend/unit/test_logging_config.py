import json
import logging

import pytest
import structlog

from mayhem.backend.logging_config import configure_logging, get_logger


@pytest.fixture(autouse=True)
def restore_logging():
    root = logging.getLogger()
    handlers, level = root.handlers[:], root.level
    yield
    root.handlers[:] = handlers
    root.setLevel(level)
    structlog.reset_defaults()


def test_configure_logging_emits_json_lines(capsys) -> None:
    configure_logging("debug", json_output=True)

    get_logger("mayhem.test").info("Game created", game_id="g1")

    line = capsys.readouterr().out.strip().splitlines()[-1]
    record = json.loads(line)
    assert record["event"] == "Game created"
    assert record["game_id"] == "g1"
    assert record["level"] == "info"
    assert record["logger"] == "mayhem.test"
    assert logging.getLogger().level == logging.DEBUG


def test_configure_logging_filters_below_level(capsys) -> None:
    configure_logging("WARNING")

    get_logger("mayhem.test").info("hidden")
    get_logger("mayhem.test").warning("shown", player_id="p1")

    out = capsys.readouterr().out
    assert "hidden" not in out
    assert "event='shown'" in out
    assert "player_id='p1'" in out
