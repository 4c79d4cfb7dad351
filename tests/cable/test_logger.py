import logging
import sys

import pytest

from cable import logger as cable_logger
from cable.logger import (
    DEBUG,
    INFO,
    WARNING,
    CableCustomFormatter,
    configure_logging,
    get_logger,
    set_level,
)


@pytest.fixture(autouse=True)
def reset_logging_state():
    root = logging.getLogger()
    original_level = root.level
    yield
    set_level(original_level)


def test_get_logger_returns_named_logger():
    log = get_logger("cable.tests")
    assert isinstance(log, logging.Logger)
    assert log.name == "cable.tests"


def test_handler_installed_once():
    get_logger("a")
    get_logger("b")
    root = logging.getLogger()
    assert root.handlers.count(cable_logger._handler) == 1


def test_set_level_updates_root_and_handler():
    set_level(WARNING)
    assert logging.getLogger().level == WARNING
    assert cable_logger._handler.level == WARNING


def test_get_logger_level_override():
    get_logger("cable.tests", level=DEBUG)
    assert logging.getLogger().level == DEBUG


def test_configure_logging_accepts_names():
    configure_logging("warning")
    assert logging.getLogger().level == WARNING
    configure_logging("nonsense")
    assert logging.getLogger().level == INFO


def test_plain_format():
    formatter = CableCustomFormatter(use_colors=False)
    record = logging.LogRecord(
        name="cable.server",
        level=logging.ERROR,
        pathname="/srv/cable/server/channel.py",
        lineno=42,
        msg="Channel Error in %s",
        args=("ChatChannel",),
        exc_info=None,
        func="handle_channel_error",
    )

    line = formatter.format(record)

    assert "| ERROR    | cable.server" in line
    assert "Channel Error in ChatChannel" in line
    assert "(handle_channel_error - channel.py:42)" in line
    assert "\033[" not in line


def test_format_includes_exception():
    formatter = CableCustomFormatter(use_colors=False)
    try:
        raise RuntimeError("boom")
    except RuntimeError:
        record = logging.LogRecord(
            "cable", logging.ERROR, __file__, 1, "failed", None, sys.exc_info()
        )

    assert "RuntimeError: boom" in formatter.format(record)


def test_add_file_handler(tmp_path):
    log_file = tmp_path / "cable.log"
    cable_logger.add_file_handler(str(log_file), level=INFO)
    root = logging.getLogger()
    try:
        set_level(INFO)
        get_logger("cable.file").info("written to file")
        for handler in root.handlers:
            handler.flush()
        assert "written to file" in log_file.read_text(encoding="utf-8")
    finally:
        for handler in list(root.handlers):
            if isinstance(handler, logging.FileHandler):
                root.removeHandler(handler)
                handler.close()
