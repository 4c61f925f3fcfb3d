"""Coordinates open sessions, the active project and launcher/session view."""

from typing import Any

import gi

gi.require_version("GObject", "2.0")

from gi.repository import GObject
from loguru import logger

from ..models import ControllerButton, LaunchKind, LaunchMode, Project, RuntimeSession, ViewMode
from .project_registry import ProjectRegistry
from .settings_service import SettingsService
from .terminal_host import SyntheticKey, TerminalHost, TerminalHostError


class SessionCoordinator(GObject.Object):
    """State machine for session tabs.

    All methods must be called from the GLib main loop. Views subscribe
    to the signals instead of polling.

    Usage:
        coordinator = SessionCoordinator(registry, host)
        coordinator.connect("view-mode-changed", on_view_mode_changed)
        coordinator.launch_project(registry.selected_project)
    """

    __gsignals__ = {
        # callback(coordinator, view_mode_value)
        "view-mode-changed": (GObject.SignalFlags.RUN_FIRST, None, (str,)),
        # Sessions were opened, closed, or their activity flag changed
        "sessions-changed": (GObject.SignalFlags.RUN_FIRST, None, ()),
        # callback(coordinator, selected_index)
        "selection-changed": (GObject.SignalFlags.RUN_FIRST, None, (int,)),
    }

    def __init__(
        self,
        registry: ProjectRegistry,
        host: TerminalHost | None = None,
        settings: SettingsService | None = None,
    ):
        super().__init__()
        self.registry = registry
        self.host = host
        self.settings = settings or registry.settings

        self._view_mode = ViewMode.LAUNCHER
        self._active_project_id: str | None = None
        self._sessions: list[RuntimeSession] = []
        self._selected_index = 0
        self._activation_order: list[str] = []

    # Read access

    @property
    def view_mode(self) -> ViewMode:
        return self._view_mode

    @property
    def sessions(self) -> tuple[RuntimeSession, ...]:
        return tuple(self._sessions)

    @property
    def selected_index(self) -> int:
        return self._selected_index

    @property
    def active_project_id(self) -> str | None:
        return self._active_project_id

    @property
    def activation_order(self) -> tuple[str, ...]:
        """Project ids of open sessions, in the order they were opened."""
        return tuple(self._activation_order)

    @property
    def active_project(self) -> Project | None:
        if self._active_project_id is None:
            return None
        return next(
            (s.project for s in self._sessions if s.project.id == self._active_project_id),
            None,
        )

    @property
    def selected_session(self) -> RuntimeSession | None:
        if 0 <= self._selected_index < len(self._sessions):
            return self._sessions[self._selected_index]
        return None

    def session_index_for_project(self, project_id: str) -> int | None:
        for index, session in enumerate(self._sessions):
            if session.project.id == project_id:
                return index
        return None

    # Change notification

    def _snapshot(self) -> tuple:
        return (
            self._view_mode,
            [(s.id, s.has_activity) for s in self._sessions],
            self._selected_index,
            self._active_project_id,
        )

    def _emit_changes(self, before: tuple):
        view_mode, sessions, selected_index, active_project_id = before
        if view_mode != self._view_mode:
            self.emit("view-mode-changed", self._view_mode.value)
        if sessions != [(s.id, s.has_activity) for s in self._sessions]:
            self.emit("sessions-changed")
        if (selected_index, active_project_id) != (self._selected_index, self._active_project_id):
            self.emit("selection-changed", self._selected_index)

    def _select(self, index: int):
        session = self._sessions[index]
        self._selected_index = index
        self._active_project_id = session.project.id
        session.has_activity = False
        session.project.has_activity = False

    # Launching

    def _create_surface(self, project: Project, mode: LaunchMode) -> Any:
        if self.host is None:
            return None
        command = mode.startup_command(self.settings.agent_command)
        try:
            return self.host.create_surface(project.path, self.settings.agent_environment, command)
        except TerminalHostError as e:
            logger.error("Failed to create terminal for {}: {}", project.name, e)
            return None

    def launch_project(self, project: Project, mode: LaunchMode | None = None) -> RuntimeSession:
        """Open a project in a session tab, or switch to its existing tab."""
        mode = mode or LaunchMode.continue_session()
        if mode.kind == LaunchKind.TELEPORT:
            raise ValueError("use teleport_to_session() for teleport launches")

        before = self._snapshot()
        self.registry.mark_opened(project)

        existing = self.session_index_for_project(project.id)
        if existing is not None:
            self._select(existing)
            session = self._sessions[existing]
        else:
            session = RuntimeSession(project=project, surface=self._create_surface(project, mode))
            self._sessions.append(session)
            self._select(len(self._sessions) - 1)
            if project.id not in self._activation_order:
                self._activation_order.append(project.id)
            logger.info("Opened session for {} ({})", project.name, mode.kind.value)

        self._view_mode = ViewMode.SESSION
        self._emit_changes(before)
        return session

    def launch_fresh_session(self, project: Project) -> RuntimeSession:
        """Launch a project with a new agent session."""
        return self.launch_project(project, LaunchMode.fresh())

    def resume_session(self, project: Project, session_id: str) -> RuntimeSession:
        """Launch a project resuming a specific recorded session."""
        return self.launch_project(project, LaunchMode.resume(session_id))

    def teleport_to_session(self, session_id: str) -> RuntimeSession | None:
        """Open an extra tab for the active project that teleports to a session."""
        project = self.active_project
        if project is None:
            logger.warning("Teleport to {} ignored: no active project", session_id)
            return None
        if self.host is None:
            logger.warning("Teleport to {} ignored: no terminal host", session_id)
            return None

        before = self._snapshot()
        surface = self._create_surface(project, LaunchMode.teleport(session_id))
        session = RuntimeSession(project=project, surface=surface)
        self._sessions.append(session)
        self._select(len(self._sessions) - 1)
        self._view_mode = ViewMode.SESSION
        self._emit_changes(before)
        return session

    # Closing

    def close_session(self, index: int) -> RuntimeSession | None:
        """Close the tab at index. Always ends in the launcher."""
        before = self._snapshot()

        if not 0 <= index < len(self._sessions):
            logger.debug("close_session: invalid index {}", index)
            self._view_mode = ViewMode.LAUNCHER
            self._emit_changes(before)
            return None

        closed = self._sessions.pop(index)
        project_id = closed.project.id
        if self.session_index_for_project(project_id) is None:
            self._activation_order = [pid for pid in self._activation_order if pid != project_id]

        if not self._sessions:
            self._active_project_id = None
            self._selected_index = 0
        else:
            # Keep the same logical session selected for when the user returns
            if self._selected_index >= len(self._sessions):
                self._selected_index = len(self._sessions) - 1
            elif index < self._selected_index:
                self._selected_index -= 1
            self._active_project_id = self._sessions[self._selected_index].project.id

        self._view_mode = ViewMode.LAUNCHER
        logger.info("Closed session for {}", closed.project.name)
        self._emit_changes(before)
        return closed

    def close_current_session(self) -> RuntimeSession | None:
        return self.close_session(self._selected_index)

    # Switching

    def switch_to_session(self, index: int) -> bool:
        """Show the tab at index. Returns False for an invalid index."""
        if not 0 <= index < len(self._sessions):
            return False

        before = self._snapshot()
        self._select(index)
        self._view_mode = ViewMode.SESSION
        self._emit_changes(before)
        return True

    def next_session(self):
        if not self._sessions:
            return
        self.switch_to_session((self._selected_index + 1) % len(self._sessions))

    def previous_session(self):
        if not self._sessions:
            return
        new_index = self._selected_index - 1
        self.switch_to_session(len(self._sessions) - 1 if new_index < 0 else new_index)

    def return_to_launcher(self):
        """Show the launcher. Open sessions are kept for later return."""
        before = self._snapshot()
        self._view_mode = ViewMode.LAUNCHER
        self._emit_changes(before)

    # Input

    def handle_button(self, button: ControllerButton) -> bool:
        """Handle a global button press.

        Returns True if the button was consumed; anything else is left for
        the active view to interpret.
        """
        if button == ControllerButton.SELECT:
            self.return_to_launcher()
            return True
        if button == ControllerButton.LEFT_BUMPER:
            self.previous_session()
            return True
        if button == ControllerButton.RIGHT_BUMPER:
            self.next_session()
            return True
        if self._view_mode == ViewMode.SESSION:
            if button == ControllerButton.A:
                return self.send_key(SyntheticKey.RETURN)
            if button == ControllerButton.B:
                return self.send_key(SyntheticKey.ESCAPE)
        return False

    def send_key(self, key: SyntheticKey) -> bool:
        """Send a synthetic key to the selected session's surface."""
        session = self.selected_session
        if session is None or session.surface is None or self.host is None:
            return False
        try:
            self.host.send_key(session.surface, key)
        except TerminalHostError as e:
            logger.error("Failed to send {} to {}: {}", key.name, session, e)
            return False
        return True

    def mark_session_activity(self, surface: Any) -> bool:
        """Flag output on a background tab. Returns True if a tab was flagged."""
        for index, session in enumerate(self._sessions):
            if session.surface is not surface:
                continue
            if self._view_mode == ViewMode.SESSION and index == self._selected_index:
                return False
            if not session.has_activity:
                session.has_activity = True
                session.project.has_activity = True
                self.emit("sessions-changed")
            return True
        return False
