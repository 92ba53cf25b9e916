import logging
import sys
from pathlib import Path

from .config import LogConfig

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(threadName)s - %(message)s"


def _log_file_handler(file: str) -> logging.Handler:
    log_path = Path(file)
    log_path.parent.mkdir(parents=True, exist_ok=True)
    return logging.FileHandler(log_path, mode="a", encoding="utf-8")


def setup_logging(config: LogConfig) -> None:
    """
    Route every explorer logger through the root logger.

    Args:
        config: LogConfig with the level name, optional log file and
            console switch.

    Note:
        Console output goes to stderr. Stdout belongs to the CLI's JSON
        results, which must stay parseable with logging enabled. The thread
        name in each record separates request work from the cache janitor.
        Calling this again replaces the previous handlers.
    """
    level = getattr(logging, config.level.upper(), logging.INFO)

    handlers: list[logging.Handler] = []
    if config.file:
        handlers.append(_log_file_handler(config.file))
    if config.console:
        handlers.append(logging.StreamHandler(sys.stderr))

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)
