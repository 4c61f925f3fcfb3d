"""
Shared test fixtures for terminaut tests.

- Temporary home directory (registry, scan roots and session logs live in it)
- Settings, registry, catalog and coordinator wired to that home
- A fake terminal host recording surfaces and key presses
"""

import json
import os
from pathlib import Path

import pytest

from terminaut.services import (
    ProjectRegistry,
    SessionCatalog,
    SessionCoordinator,
    SettingsService,
    TerminalHost,
    TerminalHostError,
)


class FakeTerminalHost(TerminalHost):
    """Terminal host that hands out plain objects as surfaces."""

    def __init__(self):
        self.surfaces: list[dict] = []
        self.keys: list[tuple[dict, object]] = []
        self.fail_create = False

    def create_surface(self, working_directory, environment, startup_command):
        if self.fail_create:
            raise TerminalHostError("no display")
        surface = {
            "cwd": working_directory,
            "env": dict(environment),
            "command": startup_command,
        }
        self.surfaces.append(surface)
        return surface

    def send_key(self, surface, key):
        self.keys.append((surface, key))


# ============================================================================
# DIRECTORY FIXTURES
# ============================================================================


@pytest.fixture
def temp_home(tmp_path, monkeypatch):
    """Temporary home directory.

    Sets HOME so that ~ expansion and Path.home() point inside tmp_path.
    """
    home = tmp_path / "home"
    home.mkdir()
    monkeypatch.setenv("HOME", str(home))
    return home


@pytest.fixture
def config_dir(temp_home):
    return temp_home / ".config" / "terminaut"


@pytest.fixture
def log_root(temp_home):
    root = temp_home / ".claude" / "projects"
    root.mkdir(parents=True)
    return root


@pytest.fixture
def make_project(temp_home):
    """Create a project directory under ~/<root>/<name> with a marker file."""

    def _make(name: str, root: str = "Projects", marker: str | None = ".git") -> Path:
        path = temp_home / root / name
        path.mkdir(parents=True)
        if marker == ".git":
            (path / ".git").mkdir()
        elif marker:
            (path / marker).write_text("")
        return path

    return _make


@pytest.fixture
def write_log(log_root):
    """Write a session log for a project. Lines may be dicts or raw strings."""

    def _write(project_path, session_id: str, lines, mtime: float | None = None) -> Path:
        encoded = str(project_path).replace(os.sep, "-")
        log_dir = log_root / encoded
        log_dir.mkdir(parents=True, exist_ok=True)
        log_file = log_dir / f"{session_id}.jsonl"
        text = "\n".join(json.dumps(line) if isinstance(line, dict) else line for line in lines)
        log_file.write_text(text + "\n", encoding="utf-8")
        if mtime is not None:
            os.utime(log_file, (mtime, mtime))
        return log_file

    return _write


# ============================================================================
# SERVICE FIXTURES
# ============================================================================


@pytest.fixture
def settings(config_dir):
    return SettingsService(config_dir)


@pytest.fixture
def registry(settings):
    return ProjectRegistry(settings)


@pytest.fixture
def catalog(log_root):
    return SessionCatalog(log_root)


@pytest.fixture
def host():
    return FakeTerminalHost()


@pytest.fixture
def coordinator(registry, host):
    return SessionCoordinator(registry, host)


@pytest.fixture
def registered(registry, make_project):
    """Registry holding three manually added projects: alpha, beta, gamma."""
    for name in ("alpha", "beta", "gamma"):
        registry.add(name, make_project(name, root="Work"))
    return registry
