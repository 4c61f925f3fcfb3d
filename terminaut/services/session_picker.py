"""Selection model for the resume-session picker."""

from enum import Enum

from ..models import Project, SessionSummary
from .coordinator import SessionCoordinator


class PickerKey(Enum):
    UP = "up"
    DOWN = "down"
    CONFIRM = "confirm"
    NEW = "new"
    CANCEL = "cancel"


class PickerOutcome(Enum):
    NONE = "none"  # Still picking
    RESUME = "resume"
    NEW_SESSION = "new_session"
    CANCELLED = "cancelled"


class SessionPicker:
    """Picks one of a project's recorded sessions.

    Selection clamps at both ends; it does not wrap.
    """

    def __init__(self, project: Project, sessions: list[SessionSummary]):
        self.project = project
        self.sessions = list(sessions)
        self.selected_index = 0
        self.outcome = PickerOutcome.NONE

    @property
    def selected_session(self) -> SessionSummary | None:
        if 0 <= self.selected_index < len(self.sessions):
            return self.sessions[self.selected_index]
        return None

    def move_up(self):
        if self.selected_index > 0:
            self.selected_index -= 1

    def move_down(self):
        if self.selected_index < len(self.sessions) - 1:
            self.selected_index += 1

    def confirm(self) -> SessionSummary | None:
        session = self.selected_session
        if session is not None:
            self.outcome = PickerOutcome.RESUME
        return session

    def handle_key(self, key: PickerKey) -> bool:
        """Apply a key press. Returns True if the key was consumed."""
        if key == PickerKey.UP:
            self.move_up()
        elif key == PickerKey.DOWN:
            self.move_down()
        elif key == PickerKey.CONFIRM:
            self.confirm()
        elif key == PickerKey.NEW:
            self.outcome = PickerOutcome.NEW_SESSION
        elif key == PickerKey.CANCEL:
            self.outcome = PickerOutcome.CANCELLED
        else:
            return False
        return True

    def apply(self, coordinator: SessionCoordinator):
        """Carry out the picked outcome on the coordinator."""
        if self.outcome == PickerOutcome.RESUME:
            return coordinator.resume_session(self.project, self.selected_session.id)
        if self.outcome == PickerOutcome.NEW_SESSION:
            return coordinator.launch_fresh_session(self.project)
        return None
