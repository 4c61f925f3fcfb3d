"""Path helpers shared by the project registry and the session catalog."""

import os
from pathlib import Path


def normalize_project_path(path: str | Path) -> str:
    """Return an absolute, tilde-expanded path string.

    Symlinks are not resolved so that scanned paths and manually added
    paths compare equal when they are spelled the same way.
    """
    return os.path.abspath(os.path.expanduser(str(path)))


def encode_project_path(path: str | Path) -> str:
    """Encode a project path the way the agent names its log directories.

    Example: ~/Projects/foo -> -home-user-Projects-foo
    """
    expanded = os.path.expanduser(str(path))
    return expanded.replace(os.sep, "-")


def session_log_dir(log_root: Path, project_path: str | Path) -> Path:
    """Directory holding the session logs recorded for a project."""
    return Path(log_root) / encode_project_path(project_path)


def display_path(path: str | Path) -> str:
    """Return a shortened display path with the home directory as ~."""
    path = Path(path)
    try:
        return str("~" / path.relative_to(Path.home()))
    except ValueError:
        return str(path)
