"""Utility functions shared across the scraper packages."""

import logging
from pathlib import Path

from .app_paths import (
    APP_DIR_NAME,
    get_config_dir,
    get_driver_directory,
    get_local_data_dir,
    get_logs_directory,
    get_project_root,
)

logger = logging.getLogger(__name__)


def ensure_dirs_exist(path: Path) -> None:
    """Ensure that the parent directories for the given path exist.
    If path is a directory, ensure the path itself exists.
    Logs an error but does not re-raise exceptions during directory creation.
    """
    try:
        if path.suffix:  # If path includes a filename, make parent dirs
            path.parent.mkdir(parents=True, exist_ok=True)
        else:
            path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.error(f"Failed to create directories for {path}: {e}")


__all__ = [
    "APP_DIR_NAME",
    "ensure_dirs_exist",
    "get_config_dir",
    "get_driver_directory",
    "get_local_data_dir",
    "get_logs_directory",
    "get_project_root",
]
