# src/headmap_shell/core/utils/path_utils.py
import logging
from pathlib import Path

logger = logging.getLogger(__name__)


class PathUtils:
    """
    A central utility for reliably retrieving package and user paths.
    """

    # --- Package specific paths

    @staticmethod
    def get_shell_package_root() -> Path:
        """Directory of the headmap_shell package (holds settings.json)."""
        return Path(__file__).resolve().parents[2]

    @staticmethod
    def get_handlers_dir() -> Path:
        return PathUtils.get_shell_package_root() / "core" / "handlers"

    @staticmethod
    def get_settings_file() -> Path:
        return PathUtils.get_shell_package_root() / "settings.json"

    # --- User specific paths ---

    @staticmethod
    def get_shell_history_file(file_name: str = ".headmap_shell_history") -> Path:
        """
        Returns the path to the shell history file in the user's home directory.
        (e.g., ~/.headmap_shell_history)
        """
        return Path.home() / file_name

    # --- Helper methods ---

    @staticmethod
    def resolve_input_file(target: str) -> Path | None:
        """Returns the path when `target` names an existing file, None otherwise."""
        path = Path(target).expanduser()
        return path if path.is_file() else None
