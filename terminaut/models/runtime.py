"""Runtime models for open terminal sessions."""

import shlex
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from .project import Project


class ViewMode(Enum):
    """Which top-level view the launcher is showing."""
    LAUNCHER = "launcher"
    SESSION = "session"


class LaunchKind(Enum):
    """Startup policy for a new session."""
    CONTINUE = "continue"  # Resume the most recent session
    FRESH = "fresh"
    RESUME = "resume"
    TELEPORT = "teleport"


class ControllerButton(Enum):
    """Semantic buttons delivered by the input layer."""
    A = "a"
    B = "b"
    X = "x"
    Y = "y"
    SELECT = "select"
    START = "start"
    LEFT_BUMPER = "left_bumper"
    RIGHT_BUMPER = "right_bumper"
    DPAD_UP = "dpad_up"
    DPAD_DOWN = "dpad_down"
    DPAD_LEFT = "dpad_left"
    DPAD_RIGHT = "dpad_right"


@dataclass(frozen=True)
class LaunchMode:
    """A launch kind plus the session id it targets, if any."""
    kind: LaunchKind = LaunchKind.CONTINUE
    session_id: str | None = None

    def __post_init__(self):
        needs_id = self.kind in (LaunchKind.RESUME, LaunchKind.TELEPORT)
        if needs_id and not self.session_id:
            raise ValueError(f"{self.kind.value} launch requires a session id")

    @classmethod
    def continue_session(cls) -> "LaunchMode":
        return cls(LaunchKind.CONTINUE)

    @classmethod
    def fresh(cls) -> "LaunchMode":
        return cls(LaunchKind.FRESH)

    @classmethod
    def resume(cls, session_id: str) -> "LaunchMode":
        return cls(LaunchKind.RESUME, session_id)

    @classmethod
    def teleport(cls, session_id: str) -> "LaunchMode":
        return cls(LaunchKind.TELEPORT, session_id)

    def startup_command(self, agent_command: str = "claude") -> str:
        """Shell input that starts the agent, e.g. 'exec claude -c\\n'."""
        if self.kind == LaunchKind.CONTINUE:
            args = " -c"
        elif self.kind == LaunchKind.FRESH:
            args = ""
        elif self.kind == LaunchKind.RESUME:
            args = f" --resume {shlex.quote(self.session_id)}"
        else:
            args = f" --teleport {shlex.quote(self.session_id)}"
        return f"exec {agent_command}{args}\n"


@dataclass
class RuntimeSession:
    """An open tab: a project bound to a terminal surface."""
    project: Project
    surface: Any = None  # Opaque handle from the terminal host
    has_activity: bool = False
    id: str = field(default_factory=lambda: str(uuid.uuid4()))

    def __str__(self) -> str:
        return f"{self.project.name} [{self.id[:8]}]"
