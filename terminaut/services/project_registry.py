"""Service for managing the persistent list of projects."""

import json
import os
import tempfile
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

import gi

gi.require_version("GLib", "2.0")
gi.require_version("GObject", "2.0")

from gi.repository import GLib, GObject
from loguru import logger

from ..models import Project
from ..utils import normalize_project_path, session_log_dir
from .settings_service import SettingsService


def _sort_key(project: Project):
    """Recently opened first, never opened after, then by name."""
    if project.last_opened is None:
        return (1, 0.0, project.name.casefold())
    return (0, -project.last_opened.timestamp(), project.name.casefold())


def discover_projects(roots: list[Path], markers: list[str]) -> list[str]:
    """Find project directories directly under the given roots.

    Blocking filesystem I/O, safe to call from a worker thread.
    Returns normalized paths in discovery order; missing roots are skipped.
    """
    discovered = []
    for root in roots:
        try:
            entries = sorted(root.iterdir(), key=lambda p: p.name)
        except OSError:
            continue

        for entry in entries:
            if entry.name.startswith("."):
                continue
            try:
                if not entry.is_dir():
                    continue
            except OSError:
                continue
            if any((entry / marker).exists() for marker in markers):
                discovered.append(normalize_project_path(entry))

    return discovered


class ProjectRegistry(GObject.Object):
    """Owns the list of projects, its persistence and the launcher selection.

    Usage:
        registry = ProjectRegistry(settings)
        registry.connect("projects-changed", on_projects_changed)
        registry.load()
    """

    __gsignals__ = {
        # The project list changed (scan, add, remove, mark opened)
        "projects-changed": (GObject.SignalFlags.RUN_FIRST, None, ()),
        # The selected index changed: callback(registry, index)
        "selection-changed": (GObject.SignalFlags.RUN_FIRST, None, (int,)),
    }

    def __init__(self, settings: SettingsService):
        super().__init__()
        self.settings = settings
        self.config_dir = settings.config_dir
        self.config_file = self.config_dir / "projects.json"
        self.projects: list[Project] = []
        self._selected_index = 0

    # Selection

    @property
    def selected_index(self) -> int:
        return self._selected_index

    @selected_index.setter
    def selected_index(self, value: int):
        if value != self._selected_index:
            self._selected_index = value
            self.emit("selection-changed", value)

    @property
    def selected_project(self) -> Project | None:
        if 0 <= self._selected_index < len(self.projects):
            return self.projects[self._selected_index]
        return None

    def _clamp_selection(self):
        if self._selected_index >= len(self.projects):
            self.selected_index = max(0, len(self.projects) - 1)

    # Lookup

    def find_by_id(self, project_id: str) -> Project | None:
        return next((p for p in self.projects if p.id == project_id), None)

    def find_by_path(self, path: str | Path) -> Project | None:
        normalized = normalize_project_path(path)
        return next((p for p in self.projects if p.path == normalized), None)

    def __len__(self) -> int:
        return len(self.projects)

    # Persistence

    def load(self):
        """Load projects from disk, scanning when there is nothing usable."""
        if not self.config_file.exists():
            logger.info("No project registry at {}, scanning", self.config_file)
            self.scan()
            return

        try:
            with open(self.config_file, "r", encoding="utf-8") as f:
                data = json.load(f)
            if not isinstance(data, list):
                raise ValueError("registry must be a JSON array")
            projects = [Project.from_dict(record) for record in data]
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning("Failed to load projects from {}: {}", self.config_file, e)
            self.scan()
            return

        self.projects = projects
        self._clamp_selection()

        if projects and not any(p.last_opened for p in projects):
            self._recover_last_opened()

        self.emit("projects-changed")

    def _recover_last_opened(self) -> bool:
        """Fill in lastOpened from session log directory timestamps.

        Returns True if any date was recovered.
        """
        log_root = self.settings.session_log_root
        if not log_root.exists():
            return False

        recovered = 0
        for project in self.projects:
            try:
                mtime = session_log_dir(log_root, project.path).stat().st_mtime
            except OSError:
                continue
            project.last_opened = datetime.fromtimestamp(mtime, tz=timezone.utc)
            recovered += 1

        if not recovered:
            return False

        self.projects.sort(key=_sort_key)
        self.save()
        logger.info("Recovered lastOpened for {} projects from session logs", recovered)
        return True

    def save(self) -> bool:
        """Atomically rewrite the registry file. Returns True on success."""
        data = [project.to_dict() for project in self.projects]

        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.config_dir, prefix=".projects-", suffix=".json.tmp"
            )
        except OSError as e:
            logger.error("Failed to save projects: {}", e)
            return False

        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self.config_file)
        except OSError as e:
            logger.error("Failed to save projects: {}", e)
            try:
                os.unlink(tmp_name)
            except OSError:
                pass
            return False

        return True

    # Scanning

    def scan(self):
        """Scan the configured roots and merge the result (blocking)."""
        discovered = discover_projects(self.settings.scan_roots, self.settings.project_markers)
        self._apply_scan(discovered)

    def scan_async(self, callback: Callable[[list[Project]], None] | None = None):
        """Scan in a background thread, merging on the main loop."""
        roots = self.settings.scan_roots
        markers = self.settings.project_markers

        def on_discovered(discovered: list[str]):
            self._apply_scan(discovered)
            if callback:
                callback(list(self.projects))
            return GLib.SOURCE_REMOVE

        def run_scan():
            GLib.idle_add(on_discovered, discover_projects(roots, markers))

        thread = threading.Thread(target=run_scan, daemon=True)
        thread.start()
        return thread

    def _apply_scan(self, discovered: list[str]):
        """Merge discovered paths with known projects, keeping their metadata."""
        existing_by_path: dict[str, Project] = {}
        for project in self.projects:
            existing_by_path.setdefault(project.path, project)

        merged: list[Project] = []
        seen: set[str] = set()

        for path in discovered:
            if path in seen:
                continue
            seen.add(path)
            existing = existing_by_path.get(path)
            merged.append(existing or Project(name=os.path.basename(path), path=path))

        # Keep manually added projects outside the roots while they exist
        for project in self.projects:
            if project.path in seen:
                continue
            seen.add(project.path)
            if project.exists:
                merged.append(project)
            else:
                logger.debug("Dropping vanished project {}", project.path)

        merged.sort(key=_sort_key)
        self.projects = merged
        self._clamp_selection()
        self.save()
        logger.info("Scan found {} projects", len(merged))
        self.emit("projects-changed")

    # Mutation

    def add(self, name: str, path: str | Path) -> Project:
        """Register a project. Returns the existing one if the path is known."""
        normalized = normalize_project_path(path)
        existing = self.find_by_path(normalized)
        if existing:
            return existing

        project = Project(name=name or os.path.basename(normalized), path=normalized)
        self.projects.append(project)
        self.save()
        self.emit("projects-changed")
        return project

    def remove(self, index: int) -> Project | None:
        """Remove the project at index. Out-of-range indices are ignored."""
        if not 0 <= index < len(self.projects):
            logger.debug("Ignoring remove of invalid index {}", index)
            return None

        project = self.projects.pop(index)
        self._clamp_selection()
        self.save()
        self.emit("projects-changed")
        return project

    def mark_opened(self, project: Project) -> Project | None:
        """Stamp lastOpened on the registered project with the same id."""
        target = self.find_by_id(project.id)
        if target is None:
            logger.debug("mark_opened: {} is not registered", project.path)
            return None

        target.last_opened = datetime.now(timezone.utc)
        self.save()
        self.emit("projects-changed")
        return target

    # Navigation

    def move_selection(self, delta: int):
        """Move selection with wrap-around over the flat list."""
        if not self.projects:
            return
        count = len(self.projects)
        self.selected_index = (self._selected_index + delta + count) % count

    def move_vertical(self, row_delta: int, column_count: int):
        """Grid-aware vertical navigation that stays in the same column."""
        if not self.projects or column_count < 1:
            return

        count = len(self.projects)
        current_row = self._selected_index // column_count
        current_col = self._selected_index % column_count
        total_rows = (count + column_count - 1) // column_count

        target_row = current_row + row_delta

        if target_row < 0:
            # Wrap to the last row that has this column
            target_row = total_rows - 1
            target_index = target_row * column_count + current_col
            while target_index >= count and target_row > 0:
                target_row -= 1
                target_index = target_row * column_count + current_col
            self.selected_index = min(target_index, count - 1)
        elif target_row >= total_rows:
            self.selected_index = current_col
        else:
            target_index = target_row * column_count + current_col
            if target_index < count:
                self.selected_index = target_index
            else:
                # Short last row, wrap to top of column
                self.selected_index = current_col

    def move_horizontal(self, col_delta: int, column_count: int):
        """Horizontal navigation.

        Moving before the first item steps back by one (clamped at 0) and
        moving past the last item wraps to 0. The asymmetry is kept for
        compatibility with existing launcher key maps.
        """
        if not self.projects:
            return

        new_index = self._selected_index + col_delta

        if new_index < 0:
            self.selected_index = max(0, self._selected_index - 1)
        elif new_index >= len(self.projects):
            self.selected_index = 0
        else:
            self.selected_index = new_index
