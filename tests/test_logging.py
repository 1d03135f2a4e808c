import logging

import pytest

from utils.logging_config import setup_logging, setup_logging_from_config


@pytest.fixture(autouse=True)
def restore_root_logger():
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()
    for handler in handlers:
        root.addHandler(handler)
    root.setLevel(level)


def test_log_file_is_created_with_format(tmp_path):
    log_file = tmp_path / "logs" / "monitor.log"
    setup_logging(log_file=str(log_file), console_output=False)

    logging.getLogger("monitor.scan").info("Starting portal scan...")
    for handler in logging.getLogger().handlers:
        handler.flush()

    line = log_file.read_text(encoding="utf-8").strip()
    assert line.endswith("[INFO] [monitor.scan] Starting portal scan...")


def test_repeated_setup_replaces_handlers(tmp_path):
    setup_logging(log_file=str(tmp_path / "a.log"))
    root = setup_logging(log_file=str(tmp_path / "b.log"))

    assert len(root.handlers) == 2


def test_level_override_and_quiet_third_party_loggers(tmp_path):
    config = {"general": {"log_file": str(tmp_path / "monitor.log"), "log_level": "INFO"}}

    root = setup_logging_from_config(config, log_level="DEBUG")

    assert root.level == logging.DEBUG
    assert logging.getLogger("selenium").level == logging.WARNING
