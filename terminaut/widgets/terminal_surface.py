"""VTE-backed terminal host for session surfaces."""

import os
from typing import Callable

import gi

gi.require_version("Gtk", "4.0")
gi.require_version("Vte", "3.91")

from gi.repository import GLib, Vte
from loguru import logger

from ..services.terminal_host import SyntheticKey, TerminalHost, TerminalHostError


class VteTerminalHost(TerminalHost):
    """Creates Vte.Terminal surfaces running the user's shell."""

    def __init__(self, on_activity: Callable[[Vte.Terminal], None] | None = None):
        self._on_activity = on_activity

    def create_surface(
        self,
        working_directory: str,
        environment: dict[str, str],
        startup_command: str,
    ) -> Vte.Terminal:
        if not os.path.isdir(working_directory):
            raise TerminalHostError(f"Working directory does not exist: {working_directory}")

        terminal = Vte.Terminal()
        terminal.set_hexpand(True)
        terminal.set_vexpand(True)
        terminal.set_scroll_on_output(True)
        terminal.set_scroll_on_keystroke(True)
        terminal.set_scrollback_lines(10000)

        if self._on_activity:
            terminal.connect("contents-changed", self._on_activity)

        env = dict(os.environ)
        env.update(environment)
        envv = [f"{key}={value}" for key, value in env.items()]
        shell = os.environ.get("SHELL", "/bin/bash")

        def on_spawn_complete(term, pid, error):
            if error:
                logger.error("Terminal spawn error in {}: {}", working_directory, error)
                return
            logger.debug("Spawned {} (pid {}) in {}", shell, pid, working_directory)
            term.feed_child(startup_command.encode())

        terminal.spawn_async(
            Vte.PtyFlags.DEFAULT,
            working_directory,
            [shell],
            envv,
            GLib.SpawnFlags.DEFAULT,
            None,  # Child setup callback
            None,  # Child setup data
            -1,    # Timeout (-1 = default)
            None,  # Cancellable
            on_spawn_complete,
        )
        return terminal

    def send_key(self, surface: Vte.Terminal, key: SyntheticKey) -> None:
        if not isinstance(surface, Vte.Terminal):
            raise TerminalHostError(f"Not a VTE surface: {surface!r}")
        surface.feed_child(key.value.encode())
