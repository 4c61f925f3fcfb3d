"""Terminaut - launcher for AI coding-agent terminal sessions."""

import argparse
import sys
from pathlib import Path

from loguru import logger

from .logging_config import setup_logger
from .services import (
    ProjectRegistry,
    SessionCatalog,
    SettingsService,
    migrate_config_if_needed,
)


def build_services(config_dir: str | None = None) -> tuple[SettingsService, ProjectRegistry, SessionCatalog]:
    """Construct the shared services. The registry is not loaded yet."""
    if config_dir is None:
        migrate_config_if_needed()
    settings = SettingsService(Path(config_dir).expanduser() if config_dir else None)
    registry = ProjectRegistry(settings)
    catalog = SessionCatalog(settings.session_log_root)
    return settings, registry, catalog


def run_gui(settings: SettingsService, registry: ProjectRegistry, catalog: SessionCatalog) -> int:
    """Start the GTK launcher."""
    import gi

    gi.require_version("Gtk", "4.0")
    gi.require_version("Adw", "1")

    from gi.repository import Adw, Gio

    from .services import SessionCoordinator
    from .widgets.terminal_surface import VteTerminalHost
    from .window import TerminautWindow

    class Application(Adw.Application):
        """Main application class."""

        def __init__(self):
            super().__init__(
                application_id="dev.terminaut.Terminaut",
                flags=Gio.ApplicationFlags.FLAGS_NONE,
            )
            self.window = None

        def do_activate(self):
            """Called when the application is activated."""
            if self.window is None:
                coordinator = SessionCoordinator(registry, settings=settings)
                coordinator.host = VteTerminalHost(on_activity=coordinator.mark_session_activity)
                registry.load()
                self.window = TerminautWindow(
                    registry, catalog, coordinator, application=self
                )
            self.window.present()

    app = Application()
    return app.run([sys.argv[0]])


def cmd_projects(registry: ProjectRegistry, _args) -> int:
    registry.load()
    if not registry.projects:
        print("No projects found.")
        return 0
    for index, project in enumerate(registry.projects):
        opened = project.last_opened.astimezone().strftime("%Y-%m-%d %H:%M") if project.last_opened else "-"
        print(f"{index:3d}  {project.name:<30} {opened:<16}  {project.display_path}")
    return 0


def cmd_scan(registry: ProjectRegistry, _args) -> int:
    registry.load()
    registry.scan()
    print(f"{len(registry)} projects")
    return 0


def cmd_add(registry: ProjectRegistry, args) -> int:
    path = Path(args.path).expanduser()
    if not path.is_dir():
        print(f"Error: Project path does not exist: {args.path}", file=sys.stderr)
        return 1
    registry.load()
    project = registry.add(args.name or path.name, path)
    print(f"Registered {project}")
    return 0


def cmd_remove(registry: ProjectRegistry, args) -> int:
    registry.load()
    project = registry.remove(args.index)
    if project is None:
        print(f"Error: No project at index {args.index}", file=sys.stderr)
        return 1
    print(f"Removed {project}")
    return 0


def cmd_sessions(catalog: SessionCatalog, args) -> int:
    sessions = catalog.list(Path(args.path).expanduser().absolute())
    if not sessions:
        print("No previous sessions.")
        return 0
    for session in sessions:
        print(f"{session.id}  {session.relative_time:>10}  {session.message_count_label:>10}  {session.display_name}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="terminaut", description="Terminaut")
    parser.add_argument("--config-dir", type=str, help="Configuration directory to use")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    subparsers = parser.add_subparsers(dest="command")
    subparsers.add_parser("run", help="Start the launcher (default)")
    subparsers.add_parser("projects", help="List registered projects")
    subparsers.add_parser("scan", help="Rescan project directories")

    add_parser = subparsers.add_parser("add", help="Register a project directory")
    add_parser.add_argument("path")
    add_parser.add_argument("--name", "-n", type=str, help="Display name")

    remove_parser = subparsers.add_parser("remove", help="Remove a project by index")
    remove_parser.add_argument("index", type=int)

    sessions_parser = subparsers.add_parser("sessions", help="List recorded sessions for a project")
    sessions_parser.add_argument("path")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Application entry point."""
    args = build_parser().parse_args(argv)
    setup_logger(verbose=args.verbose, log_to_file=args.command in (None, "run"))

    settings, registry, catalog = build_services(args.config_dir)
    command = args.command or "run"
    logger.debug("Running command {}", command)

    if command == "run":
        return run_gui(settings, registry, catalog)
    if command == "sessions":
        return cmd_sessions(catalog, args)

    handlers = {
        "projects": cmd_projects,
        "scan": cmd_scan,
        "add": cmd_add,
        "remove": cmd_remove,
    }
    return handlers[command](registry, args)


if __name__ == "__main__":
    sys.exit(main())
