"""Service for reading agent session logs from ~/.claude/projects/."""

import codecs
import json
import re
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable

import gi

gi.require_version("GLib", "2.0")

from gi.repository import GLib
from loguru import logger

from ..models import SessionSummary, PARSE_PREFIX_BYTES
from ..utils import session_log_dir

LOG_SUFFIX = ".jsonl"

EPOCH = datetime.fromtimestamp(0, tz=timezone.utc)

_LINE_BREAK = re.compile(r"\r\n|\r|\n")


def clean_message(text: str) -> str:
    """Flatten a message for single-line display."""
    return text.strip().replace("\n", " ").replace("  ", " ")


def parse_session_content(data: bytes, truncated: bool) -> tuple[int, str | None]:
    """Count messages and find the first user message in a log prefix.

    Args:
        data: Raw bytes read from the start of the log
        truncated: True if data is only a prefix of the file

    Returns:
        (message_count, first_user_message); (0, None) if undecodable
    """
    decoder = codecs.getincrementaldecoder("utf-8")()
    try:
        # A prefix may end inside a multi-byte character, drop it
        content = decoder.decode(data, final=not truncated)
    except UnicodeDecodeError:
        return 0, None

    message_count = 0
    first_user_message = None

    for line in _LINE_BREAK.split(content):
        if not line:
            continue
        message_count += 1

        if first_user_message is not None:
            continue

        try:
            event = json.loads(line)
        except (ValueError, RecursionError):
            continue
        if not isinstance(event, dict) or event.get("type") != "user":
            continue

        message = event.get("message")
        if isinstance(message, dict) and isinstance(message.get("content"), str):
            first_user_message = clean_message(message["content"])
        elif isinstance(event.get("content"), str):
            first_user_message = clean_message(event["content"])

    return message_count, first_user_message


class SessionCatalog:
    """Reads session metadata for a project from the agent's log store."""

    def __init__(self, log_root: Path | None = None):
        self.log_root = Path(log_root) if log_root else Path.home() / ".claude" / "projects"

    def find_project_log_dir(self, project_path: str | Path) -> Path | None:
        """Find the log directory for a project path."""
        log_dir = session_log_dir(self.log_root, project_path)
        if log_dir.is_dir():
            return log_dir
        return None

    def list_async(
        self,
        project_path: str | Path,
        callback: Callable[[list[SessionSummary]], None],
    ) -> threading.Thread:
        """List sessions in a background thread, delivering on the main loop."""
        def deliver(sessions):
            callback(sessions)
            return GLib.SOURCE_REMOVE

        def load_sessions():
            GLib.idle_add(deliver, self.list(project_path))

        thread = threading.Thread(target=load_sessions, daemon=True)
        thread.start()
        return thread

    def list(self, project_path: str | Path) -> list[SessionSummary]:
        """Get all sessions for a project, most recently modified first."""
        log_dir = self.find_project_log_dir(project_path)
        if not log_dir:
            return []

        try:
            entries = list(log_dir.iterdir())
        except OSError as e:
            logger.warning("Error reading sessions in {}: {}", log_dir, e)
            return []

        sessions = []
        for entry in entries:
            if entry.suffix != LOG_SUFFIX or entry.name.startswith("."):
                continue
            # Some sessions have companion directories
            if entry.is_dir():
                continue
            summary = self._parse_session_file(entry)
            if summary:
                sessions.append(summary)

        sessions.sort(key=lambda s: s.id)
        sessions.sort(key=lambda s: s.last_modified, reverse=True)
        return sessions

    def _parse_session_file(self, session_file: Path) -> SessionSummary | None:
        """Parse one log file. Returns None if it cannot be read at all."""
        try:
            stat = session_file.stat()
            last_modified = datetime.fromtimestamp(stat.st_mtime, tz=timezone.utc)
            file_size = stat.st_size
        except OSError:
            last_modified = EPOCH
            file_size = 0

        try:
            with open(session_file, "rb") as f:
                data = f.read(PARSE_PREFIX_BYTES)
                truncated = bool(f.read(1))
        except OSError as e:
            logger.warning("Skipping session log {}: {}", session_file.name, e)
            return None

        message_count, first_user_message = parse_session_content(data, truncated)

        return SessionSummary(
            id=session_file.stem,
            file_path=session_file,
            last_modified=last_modified,
            message_count=message_count,
            first_user_message=first_user_message,
            file_size=file_size,
        )
