"""Project model representing a launchable working directory."""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from pathlib import Path

from ..utils import display_path

# The legacy launcher stored dates as seconds since 2001-01-01 UTC
LEGACY_REFERENCE_DATE = datetime(2001, 1, 1, tzinfo=timezone.utc)


def _new_id() -> str:
    return str(uuid.uuid4()).upper()


@dataclass
class Project:
    """A registered project. `path` is the deduplication key, `id` never changes."""

    name: str
    path: str  # Absolute path (e.g., /home/user/Projects/foo)
    id: str = field(default_factory=_new_id)
    icon: str | None = None
    last_opened: datetime | None = None
    has_activity: bool = False

    @property
    def display_path(self) -> str:
        """Return a shortened display path."""
        return display_path(self.path)

    @property
    def exists(self) -> bool:
        return Path(self.path).exists()

    def to_dict(self) -> dict:
        """Serialize to the registry file record format."""
        data = {
            "id": self.id,
            "name": self.name,
            "path": self.path,
            "hasActivity": self.has_activity,
        }
        if self.icon is not None:
            data["icon"] = self.icon
        if self.last_opened is not None:
            data["lastOpened"] = self.last_opened.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Project":
        """Build a project from a registry file record.

        Raises:
            KeyError, TypeError, ValueError: If the record is malformed
        """
        if not isinstance(data, dict):
            raise TypeError(f"Project record must be an object, got {type(data).__name__}")

        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            path=str(data["path"]),
            icon=data.get("icon"),
            last_opened=parse_timestamp(data.get("lastOpened")),
            has_activity=data.get("hasActivity") is True,
        )

    def __str__(self) -> str:
        return f"{self.name} ({self.display_path})"


def parse_timestamp(value) -> datetime | None:
    """Parse a stored lastOpened value.

    Accepts ISO-8601 strings and legacy numeric reference-date seconds.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError(f"Invalid timestamp: {value!r}")
    if isinstance(value, (int, float)):
        try:
            return LEGACY_REFERENCE_DATE + timedelta(seconds=value)
        except OverflowError as e:
            raise ValueError(f"Timestamp out of range: {value!r}") from e

    ts = str(value)
    if ts.endswith("Z"):
        ts = ts[:-1] + "+00:00"
    parsed = datetime.fromisoformat(ts)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
