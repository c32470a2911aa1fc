import logging
import os
from datetime import datetime
from pathlib import Path

_LOGGERS = {}
_RUN_STAMP = datetime.now().strftime("%Y%m%d-%H%M%S")


def _file_logging_enabled() -> bool:
    return os.getenv("TWITCH_MCP_LOG_FILE", "1").strip().lower() not in {
        "0",
        "false",
        "no",
        "off",
    }


def get_logger(
    name: str,
    *,
    runtime: str = "twitchmcp",
) -> logging.Logger:
    """
    Create or retrieve a named logger.

    Parameters:
    - name: logger namespace (e.g. mcp.dispatcher, twitch.chat)
    - runtime: log file prefix (twitchmcp | future runtimes)

    Every logger writes to the console. Unless TWITCH_MCP_LOG_FILE=0, it
    also writes to one file per run under TWITCH_MCP_LOG_DIR (default: logs/).
    """
    cache_key = f"{runtime}:{name}"
    if cache_key in _LOGGERS:
        return _LOGGERS[cache_key]

    logger = logging.getLogger(cache_key)
    logger.setLevel(os.getenv("TWITCH_MCP_LOG_LEVEL", "DEBUG").upper())

    formatter = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(name)s | %(message)s"
    )

    # ------------------------------
    # Console handler
    # ------------------------------
    console = logging.StreamHandler()
    console.setFormatter(formatter)
    logger.addHandler(console)

    # ------------------------------
    # File handler (one per run)
    # ------------------------------
    if _file_logging_enabled():
        log_dir = Path(os.getenv("TWITCH_MCP_LOG_DIR", "logs"))
        log_dir.mkdir(parents=True, exist_ok=True)
        logfile = log_dir / f"{runtime}-{_RUN_STAMP}.log"

        file_handler = logging.FileHandler(logfile, encoding="utf-8")
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    logger.propagate = False
    _LOGGERS[cache_key] = logger

    return logger
