from .project import Project, parse_timestamp
from .session import SessionSummary, PARSE_PREFIX_BYTES
from .runtime import ViewMode, LaunchKind, LaunchMode, RuntimeSession, ControllerButton

__all__ = [
    "Project",
    "parse_timestamp",
    "SessionSummary",
    "PARSE_PREFIX_BYTES",
    "ViewMode",
    "LaunchKind",
    "LaunchMode",
    "RuntimeSession",
    "ControllerButton",
]
