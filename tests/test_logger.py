import logging

from shared.logging import logger as logger_module
from shared.logging.logger import get_logger


def test_loggers_are_cached():
    assert get_logger("tests.cached") is get_logger("tests.cached")


def test_console_only_when_file_logging_disabled(monkeypatch):
    monkeypatch.setenv("TWITCH_MCP_LOG_FILE", "0")
    log = get_logger("tests.console_only")
    assert not any(isinstance(h, logging.FileHandler) for h in log.handlers)
    assert log.propagate is False


def test_file_handler(monkeypatch, tmp_path):
    monkeypatch.setenv("TWITCH_MCP_LOG_FILE", "1")
    monkeypatch.setenv("TWITCH_MCP_LOG_DIR", str(tmp_path))
    monkeypatch.setenv("TWITCH_MCP_LOG_LEVEL", "info")
    log = get_logger("tests.file", runtime="testrun")
    try:
        assert log.level == logging.INFO
        log.info("hello")
        files = list(tmp_path.glob(f"testrun-{logger_module._RUN_STAMP}.log"))
        assert len(files) == 1
    finally:
        for handler in list(log.handlers):
            handler.close()
            log.removeHandler(handler)
        logger_module._LOGGERS.pop("testrun:tests.file", None)
