"""Interface to the terminal engine that hosts session surfaces."""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Any


class SyntheticKey(Enum):
    """Keys the coordinator can inject into a session."""
    RETURN = "\r"
    ESCAPE = "\x1b"


class TerminalHostError(Exception):
    """Raised when the host cannot create or drive a surface."""


class TerminalHost(ABC):
    """Factory for terminal surfaces.

    A surface is an opaque handle owned by the host; the coordinator only
    stores it and hands it back in send_key().
    """

    @abstractmethod
    def create_surface(
        self,
        working_directory: str,
        environment: dict[str, str],
        startup_command: str,
    ) -> Any:
        """Create a terminal surface running a shell.

        Args:
            working_directory: Directory the shell starts in
            environment: Variables added to the inherited environment
            startup_command: Input fed to the shell once it is running

        Returns:
            Surface handle

        Raises:
            TerminalHostError: If the surface cannot be created
        """
        pass

    @abstractmethod
    def send_key(self, surface: Any, key: SyntheticKey) -> None:
        """Send a synthetic key press to a surface."""
        pass
