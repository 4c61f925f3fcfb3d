"""Loguru setup: readable stderr output plus a rotating JSONL log file."""

import sys
from pathlib import Path

import platformdirs
from loguru import logger

STDERR_FORMAT = "<green>{time:HH:mm:ss}</green> <level>{level: <7}</level> <cyan>{name}</cyan> {message}"


def get_log_dir() -> Path:
    """Per-user log directory.

    Linux: ~/.local/state/terminaut/log/
    macOS: ~/Library/Logs/terminaut/
    """
    return Path(platformdirs.user_log_dir(appname="terminaut"))


def setup_logger(verbose: bool = False, log_to_file: bool = True):
    """Configure the global loguru logger."""
    logger.remove()

    logger.add(
        sys.stderr,
        level="DEBUG" if verbose else "INFO",
        format=STDERR_FORMAT,
    )

    if log_to_file:
        log_dir = get_log_dir()
        try:
            log_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.warning("File logging disabled, cannot create {}: {}", log_dir, e)
            return logger

        logger.add(
            str(log_dir / "terminaut.jsonl"),
            serialize=True,
            rotation="10 MB",
            retention="7 days",
            compression="gz",
            level="DEBUG",
        )

    return logger
