"""Settings service for application-wide configuration."""

import copy
import json
from pathlib import Path
from typing import Any

import gi

gi.require_version("GObject", "2.0")

from gi.repository import GObject
from loguru import logger

from .config_path import get_config_dir


# Default settings
DEFAULT_SETTINGS = {
    "scan": {
        # Candidate roots whose direct subdirectories may be projects
        "roots": ["~/Projects", "~/Developer", "~/Code"],
        # A subdirectory is a project if it directly contains one of these
        "markers": [".git", "package.json", "Cargo.toml", "Gemfile", "build.zig", "CLAUDE.md"],
    },
    "sessions": {
        "log_root": "~/.claude/projects",
    },
    "agent": {
        "command": "claude",
        # The agent starts slowly under unknown terminals
        "environment": {"TERM_PROGRAM": "Apple_Terminal"},
    },
    "launcher": {
        "columns": 4,
    },
}


class SettingsService(GObject.Object):
    """Application settings backed by a JSON file.

    Usage:
        settings = SettingsService(config_dir)

        # Get setting
        roots = settings.get("scan.roots")

        # Set setting (auto-saves)
        settings.set("launcher.columns", 3)

        # Connect to changes
        settings.connect("changed", on_any_setting_changed)
    """

    __gsignals__ = {
        # Emitted when any setting changes: callback(service, key, value)
        "changed": (GObject.SignalFlags.RUN_FIRST, None, (str, object)),
    }

    def __init__(self, config_dir: Path | None = None):
        super().__init__()
        self.config_dir = Path(config_dir) if config_dir else get_config_dir()
        self.config_file = self.config_dir / "settings.json"
        self._settings: dict = {}
        self._ensure_config_dir()
        self._load()

    def _ensure_config_dir(self):
        """Ensure config directory exists."""
        self.config_dir.mkdir(parents=True, exist_ok=True)

    def _load(self):
        """Load settings from disk, merging with defaults."""
        saved = {}
        if self.config_file.exists():
            try:
                with open(self.config_file, "r", encoding="utf-8") as f:
                    saved = json.load(f)
            except (json.JSONDecodeError, OSError) as e:
                logger.warning("Ignoring unreadable settings file {}: {}", self.config_file, e)
            if not isinstance(saved, dict):
                logger.warning("Ignoring settings file {}: not an object", self.config_file)
                saved = {}

        self._settings = self._deep_merge(DEFAULT_SETTINGS, saved)

    def _save(self):
        """Save settings to disk."""
        try:
            with open(self.config_file, "w", encoding="utf-8") as f:
                json.dump(self._settings, f, indent=2)
        except OSError as e:
            logger.error("Failed to save settings: {}", e)

    def _deep_merge(self, defaults: dict, overrides: dict) -> dict:
        """Deep merge overrides into a copy of defaults."""
        result = copy.deepcopy(defaults)
        for key, value in overrides.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = self._deep_merge(result[key], value)
            else:
                result[key] = value
        return result

    def get(self, key: str, default: Any = None) -> Any:
        """Get a setting by dot-notation key.

        Args:
            key: Setting key like "scan.roots" or "agent.command"
            default: Default value if key not found

        Returns:
            The setting value or default
        """
        value = self._settings
        for part in key.split("."):
            if isinstance(value, dict) and part in value:
                value = value[part]
            else:
                return default
        return value

    def set(self, key: str, value: Any) -> None:
        """Set a setting by dot-notation key.

        Automatically saves to disk and emits 'changed' signal.
        """
        parts = key.split(".")
        target = self._settings

        for part in parts[:-1]:
            if not isinstance(target.get(part), dict):
                target[part] = {}
            target = target[part]

        if target.get(parts[-1]) != value:
            target[parts[-1]] = value
            self._save()
            self.emit("changed", key, value)

    def get_all(self) -> dict:
        """Get all settings as a dict."""
        return copy.deepcopy(self._settings)

    def reset(self, key: str | None = None) -> None:
        """Reset setting(s) to default.

        Args:
            key: Specific key to reset, or None to reset all
        """
        if key is None:
            self._settings = copy.deepcopy(DEFAULT_SETTINGS)
            self._save()
            self.emit("changed", "*", None)
            return

        default_value = DEFAULT_SETTINGS
        for part in key.split("."):
            if isinstance(default_value, dict) and part in default_value:
                default_value = default_value[part]
            else:
                return  # Key not in defaults

        self.set(key, copy.deepcopy(default_value))

    # Typed accessors used by the services

    def _string_list(self, key: str, default: list[str]) -> list[str]:
        value = self.get(key)
        if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
            logger.warning("Setting {} must be a list of strings, using defaults", key)
            return list(default)
        return list(value)

    @property
    def scan_roots(self) -> list[Path]:
        roots = self._string_list("scan.roots", DEFAULT_SETTINGS["scan"]["roots"])
        return [Path(root).expanduser() for root in roots]

    @property
    def project_markers(self) -> list[str]:
        return self._string_list("scan.markers", DEFAULT_SETTINGS["scan"]["markers"])

    @property
    def session_log_root(self) -> Path:
        return Path(self.get("sessions.log_root", "~/.claude/projects")).expanduser()

    @property
    def agent_command(self) -> str:
        return self.get("agent.command", "claude")

    @property
    def agent_environment(self) -> dict[str, str]:
        env = self.get("agent.environment")
        if env is None:
            return {}
        if not isinstance(env, dict):
            logger.warning("Setting agent.environment must be an object, using defaults")
            env = DEFAULT_SETTINGS["agent"]["environment"]
        return {str(k): str(v) for k, v in env.items()}

    @property
    def launcher_columns(self) -> int:
        try:
            return max(1, int(self.get("launcher.columns", 4)))
        except (TypeError, ValueError):
            return 4
