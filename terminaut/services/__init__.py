from .config_path import get_config_dir, migrate_config_if_needed
from .settings_service import SettingsService
from .project_registry import ProjectRegistry, discover_projects
from .session_catalog import SessionCatalog, parse_session_content
from .terminal_host import TerminalHost, TerminalHostError, SyntheticKey
from .coordinator import SessionCoordinator
from .session_picker import SessionPicker, PickerKey, PickerOutcome

__all__ = [
    "get_config_dir",
    "migrate_config_if_needed",
    "SettingsService",
    "ProjectRegistry",
    "discover_projects",
    "SessionCatalog",
    "parse_session_content",
    "TerminalHost",
    "TerminalHostError",
    "SyntheticKey",
    "SessionCoordinator",
    "SessionPicker",
    "PickerKey",
    "PickerOutcome",
]
