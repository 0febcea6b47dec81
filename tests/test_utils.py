import logging

import pytest

from tvdb_provider.utils import BracketFormatter, get_logger, setup_logging


def make_record(message, **extra):
    record = logging.LogRecord("tvdb_provider.metadata", logging.INFO, __file__, 1, message, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_bracket_formatter_layout():
    line = BracketFormatter().format(make_record("Fetching tvdb-show-152831"))

    assert line.endswith("[system] [INFO] [tvdb_provider.metadata] Fetching tvdb-show-152831")
    assert " UTC] " in line


def test_bracket_formatter_uses_record_user():
    line = BracketFormatter().format(make_record("hello", user="plex-server"))
    assert "[plex-server] [INFO]" in line


def test_setup_logging_writes_log_file(tmp_path):
    logger = setup_logging(log_level="debug", log_dir=str(tmp_path))

    assert logger.name == "tvdb_provider"
    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 2
    assert (tmp_path / "tvdb_provider.log").exists()


def test_setup_logging_does_not_stack_handlers(tmp_path):
    setup_logging(log_dir=str(tmp_path))
    logger = setup_logging(log_dir=str(tmp_path))
    assert len(logger.handlers) == 2


def test_setup_logging_rejects_unknown_level(tmp_path):
    with pytest.raises(ValueError):
        setup_logging(log_level="LOUD", log_dir=str(tmp_path))


def test_component_loggers_inherit_from_application_logger():
    assert get_logger().name == "tvdb_provider"
    assert get_logger("tvdb_provider.api").parent is get_logger()
