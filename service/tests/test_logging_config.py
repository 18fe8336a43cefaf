"""
Tests for logging setup.
"""

import logging

from lumber_bot.logging_config import LOGGER_NAME, RedactingFormatter, setup_logging


def make_record(message: str) -> logging.LogRecord:
    return logging.LogRecord(LOGGER_NAME, logging.INFO, __file__, 1, message, None, None)


class TestRedactingFormatter:
    def test_masks_secrets(self):
        formatter = RedactingFormatter(["123456:ABC"], fmt="%(message)s")
        text = formatter.format(make_record("Registering webhook for https://bot.example.com/123456:ABC"))
        assert text == "Registering webhook for https://bot.example.com/***"

    def test_longest_secret_first(self):
        formatter = RedactingFormatter(["abc", "abcdef"], fmt="%(message)s")
        assert formatter.format(make_record("token abcdef")) == "token ***"

    def test_blank_secrets_ignored(self):
        formatter = RedactingFormatter(["", None], fmt="%(message)s")
        assert formatter.format(make_record("nothing to hide")) == "nothing to hide"


class TestSetupLogging:
    def test_single_handler_no_propagation(self):
        logger = setup_logging("DEBUG", secrets=["s3cret"])
        setup_logging("DEBUG", secrets=["s3cret"])

        assert logger.name == LOGGER_NAME
        assert logger.level == logging.DEBUG
        assert len(logger.handlers) == 1
        assert logger.propagate is False
        assert isinstance(logger.handlers[0].formatter, RedactingFormatter)

        setup_logging()

    def test_unknown_level_falls_back_to_info(self):
        assert setup_logging("chatty").level == logging.INFO
        setup_logging()
