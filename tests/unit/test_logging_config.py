"""
Unit tests for logging setup.
"""

import logging

import pytest

from candidate_analysis.logging_config import LOGGER_NAMESPACE, get_logger, setup_logging


@pytest.fixture
def restore_logger():
    logger = logging.getLogger(LOGGER_NAMESPACE)
    handlers, level, propagate = list(logger.handlers), logger.level, logger.propagate
    yield
    for handler in logger.handlers:
        handler.close()
    logger.handlers[:] = handlers
    logger.setLevel(level)
    logger.propagate = propagate


def test_level_by_name(restore_logger):
    logger = setup_logging('debug')
    assert logger.level == logging.DEBUG
    assert len(logger.handlers) == 1


def test_unknown_level_falls_back_to_info(restore_logger):
    assert setup_logging('chatty').level == logging.INFO


def test_repeated_setup_does_not_duplicate_handlers(restore_logger):
    setup_logging()
    logger = setup_logging()
    assert len(logger.handlers) == 1


def test_file_handler(restore_logger, tmp_path):
    log_file = tmp_path / 'logs' / 'analyzer.log'
    setup_logging(console=False, log_file=log_file)

    get_logger('test').info("hello from test")
    for handler in logging.getLogger(LOGGER_NAMESPACE).handlers:
        handler.flush()

    assert "hello from test" in log_file.read_text(encoding='utf-8')


def test_child_logger_name():
    assert get_logger('store').name == 'candidate_analysis.store'
