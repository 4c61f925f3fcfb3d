from .paths import display_path, encode_project_path, normalize_project_path, session_log_dir

__all__ = [
    "display_path",
    "encode_project_path",
    "normalize_project_path",
    "session_log_dir",
]
