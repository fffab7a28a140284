import json
import logging
import sys

from logging_config import JsonFormatter, setup_logging


def make_record(msg, *args):
    return logging.LogRecord("quiz.service", logging.INFO, __file__, 1, msg, args, None)


def test_json_lines_escape_quotes():
    formatter = JsonFormatter(datefmt="%Y-%m-%d %H:%M:%S")
    line = formatter.format(make_record('answer %s was "%s"', "a1", 'say "hi"'))

    entry = json.loads(line)
    assert entry["message"] == 'answer a1 was "say "hi""'
    assert entry["level"] == "INFO"
    assert entry["logger"] == "quiz.service"


def test_json_lines_carry_tracebacks():
    formatter = JsonFormatter()
    try:
        raise ValueError("boom")
    except ValueError:
        record = logging.LogRecord("quiz", logging.ERROR, __file__, 1, "failed", (),
                                   sys.exc_info())
    entry = json.loads(formatter.format(record))
    assert "ValueError: boom" in entry["exc_info"]


def test_setup_picks_formatter():
    logger = setup_logging(log_level="DEBUG", json_format=True)
    assert logger.level == logging.DEBUG
    assert isinstance(logger.handlers[0].formatter, JsonFormatter)

    logger = setup_logging(log_level="WARNING")
    assert not isinstance(logger.handlers[0].formatter, JsonFormatter)
