"""Configuration path utilities with migration support.

Handles migration from the legacy ~/.terminaut directory to
~/.config/terminaut.
"""

import shutil
from pathlib import Path

from loguru import logger


def legacy_config_dir() -> Path:
    return Path.home() / ".terminaut"


def default_config_dir() -> Path:
    return Path.home() / ".config" / "terminaut"


def get_config_dir() -> Path:
    """Get the configuration directory, handling the legacy location.

    If old ~/.terminaut exists and new ~/.config/terminaut doesn't,
    returns old path for backward compatibility.
    """
    old_dir = legacy_config_dir()
    new_dir = default_config_dir()

    if old_dir.exists() and not new_dir.exists():
        return old_dir

    return new_dir


def migrate_config_if_needed() -> bool:
    """Migrate config from the legacy to the new directory if needed.

    Returns True if migration was performed.
    """
    old_dir = legacy_config_dir()
    new_dir = default_config_dir()

    if not old_dir.exists() or new_dir.exists():
        return False

    new_dir.parent.mkdir(parents=True, exist_ok=True)
    try:
        old_dir.rename(new_dir)
    except OSError:
        # Cross-device rename, copy instead
        try:
            shutil.copytree(old_dir, new_dir)
        except OSError as e:
            logger.warning("Config migration from {} failed: {}", old_dir, e)
            return False

    logger.info("Migrated config from {} to {}", old_dir, new_dir)
    return True
