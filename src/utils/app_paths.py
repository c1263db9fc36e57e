"""Per-user application directories for the scraper.

The driver install directory, logs and the persisted browser-profile setting
all live under these roots.
"""

import logging
import os
import platform
from pathlib import Path

logger = logging.getLogger(__name__)

APP_DIR_NAME = "satu-toko"


def get_project_root() -> Path:
    """Get the project root directory."""
    current_file = Path(__file__)
    project_root = current_file.parent.parent.parent
    return project_root.resolve()


def get_local_data_dir() -> Path:
    """Get the per-user local data directory for this application.

    Returns
    -------
        ``%LOCALAPPDATA%`` on Windows, ``~/Library/Application Support`` on
        macOS, ``$XDG_DATA_HOME`` (default ``~/.local/share``) elsewhere, each
        joined with the application directory name

    """
    system = platform.system()
    if system == "Windows":
        base = os.environ.get("LOCALAPPDATA") or str(Path.home() / "AppData" / "Local")
    elif system == "Darwin":
        base = str(Path.home() / "Library" / "Application Support")
    else:
        base = os.environ.get("XDG_DATA_HOME") or str(Path.home() / ".local" / "share")
    return Path(base) / APP_DIR_NAME


def get_config_dir() -> Path:
    """Get the per-user configuration directory for this application."""
    system = platform.system()
    if system == "Windows":
        base = os.environ.get("APPDATA") or str(Path.home() / "AppData" / "Roaming")
    elif system == "Darwin":
        base = str(Path.home() / "Library" / "Application Support")
    else:
        base = os.environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(base) / APP_DIR_NAME


def get_driver_directory() -> Path:
    """Get the default driver install directory (not created here)."""
    return get_local_data_dir() / "chromedriver"


def get_logs_directory() -> Path:
    """Get the logs directory, creating it if needed."""
    logs_dir = get_local_data_dir() / "logs"
    logs_dir.mkdir(parents=True, exist_ok=True)
    return logs_dir
