import logging

import pytest

from lsdiscovery.logging_config import setup_logging


@pytest.fixture(autouse=True)
def _restore_root_logger():
    root = logging.getLogger()
    original_handlers = list(root.handlers)
    original_level = root.level
    yield
    for handler in list(root.handlers):
        if handler not in original_handlers:
            handler.close()
    root.handlers = original_handlers
    root.setLevel(original_level)


def test_setup_logging_default_console_handler():
    setup_logging()

    root = logging.getLogger()
    assert len(root.handlers) == 1
    assert root.handlers[0].level == logging.INFO
    assert root.level == logging.INFO
    assert logging.getLogger("aiohttp").level == logging.WARNING


def test_setup_logging_user_friendly_and_verbose_levels():
    setup_logging(user_friendly=True)
    handler = logging.getLogger().handlers[0]
    assert handler.level == logging.WARNING
    assert handler.formatter._fmt == "%(message)s"

    setup_logging(verbose=True)
    assert logging.getLogger().handlers[0].level == logging.DEBUG
    assert logging.getLogger().level == logging.DEBUG


def test_setup_logging_writes_log_file(tmp_path):
    log_file = tmp_path / "nested" / "discovery.log"

    setup_logging(log_file=str(log_file))
    logging.getLogger("lsdiscovery.test").debug("probe details")
    for handler in logging.getLogger().handlers:
        handler.flush()

    assert log_file.exists()
    assert "probe details" in log_file.read_text()


def test_setup_logging_append_mode(tmp_path, monkeypatch):
    log_file = tmp_path / "discovery.log"
    log_file.write_text("previous run\n")
    monkeypatch.setenv("LSDISCOVERY_LOG_APPEND", "1")

    setup_logging(log_file=str(log_file))
    for handler in logging.getLogger().handlers:
        handler.flush()

    assert log_file.read_text().startswith("previous run")


def test_setup_logging_replaces_previous_handlers():
    setup_logging()
    setup_logging()

    assert len(logging.getLogger().handlers) == 1
