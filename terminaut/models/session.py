"""Session summary model for agent session logs."""

from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

import gi

gi.require_version("GLib", "2.0")

from gi.repository import GLib

# Bytes of each log file that are parsed for metadata
PARSE_PREFIX_BYTES = 65536

DISPLAY_NAME_LENGTH = 60


@dataclass(frozen=True)
class SessionSummary:
    """Metadata for a recorded session, parsed from a JSONL log file."""

    id: str  # Session UUID (filename without extension)
    file_path: Path
    last_modified: datetime
    message_count: int = 0  # Exact only when is_count_exact
    first_user_message: str | None = None
    file_size: int = 0

    @property
    def is_count_exact(self) -> bool:
        """True when the whole file fit in the parsed prefix."""
        return self.file_size <= PARSE_PREFIX_BYTES

    @property
    def display_name(self) -> str:
        """Truncated first message, or a short session id."""
        msg = self.first_user_message
        if msg:
            if len(msg) > DISPLAY_NAME_LENGTH:
                return msg[:DISPLAY_NAME_LENGTH] + "..."
            return msg
        return f"Session {self.id[:8]}"

    @property
    def relative_time(self) -> str:
        """Abbreviated age of the log, e.g. '5m ago'."""
        now = datetime.now(timezone.utc)
        seconds = int((now - self.last_modified).total_seconds())
        if seconds < 60:
            return "just now"
        if seconds < 3600:
            return f"{seconds // 60}m ago"
        if seconds < 86400:
            return f"{seconds // 3600}h ago"
        if seconds < 7 * 86400:
            return f"{seconds // 86400}d ago"
        return self.last_modified.astimezone().strftime("%Y-%m-%d")

    @property
    def formatted_size(self) -> str:
        return GLib.format_size(self.file_size)

    @property
    def message_count_label(self) -> str:
        if self.is_count_exact:
            return f"{self.message_count} msgs"
        return f"{self.message_count}+ msgs"

    def __str__(self) -> str:
        return f"{self.display_name} ({self.relative_time}, {self.message_count_label})"
