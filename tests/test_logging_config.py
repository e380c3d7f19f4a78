"""Tests for the CLI logger factory."""

import logging

import pytest

from persistence_harness.logging_config import (
    LOGGER_NAME,
    LoggerType,
    create_console_logger,
    create_null_logger,
    logger_factory,
)


@pytest.fixture(autouse=True)
def reset_package_logger():
    yield
    logger = logging.getLogger(LOGGER_NAME)
    logger.handlers.clear()
    logger.setLevel(logging.NOTSET)


class TestLoggerFactory:

    def test_console_logger__configures_package_logger(self):
        logger = create_console_logger("debug")

        assert logger.name == LOGGER_NAME
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
        assert isinstance(logger.handlers[0], logging.StreamHandler)

    def test_console_logger__clears_existing_handlers(self):
        logging.getLogger(LOGGER_NAME).addHandler(logging.StreamHandler())

        logger = create_console_logger()

        assert len(logger.handlers) == 1

    def test_null_logger__discards_messages(self):
        logger = create_null_logger()

        assert [type(h) for h in logger.handlers] == [logging.NullHandler]
        assert logger.propagate is False

    def test_factory__dispatches_on_type(self):
        assert logger_factory(LoggerType.NULL).name == f"{LOGGER_NAME}.null"
        assert logger_factory(LoggerType.CONSOLE, level="WARNING").level == logging.WARNING

    def test_factory__rejects_unknown_type(self):
        with pytest.raises(ValueError, match="Unknown logger type"):
            logger_factory("file")
