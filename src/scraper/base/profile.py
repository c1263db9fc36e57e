"""Lookup of the browser profile directory sessions should reuse."""

import logging
import os
from pathlib import Path

from ...utils.app_paths import get_config_dir
from .config import ENV_CHROME_PROFILE, SessionSettings

logger = logging.getLogger(__name__)

PROFILE_FILE_NAME = "chrome_profile.txt"


def get_profile_file() -> Path:
    """File the desktop shell stores the chosen profile path in."""
    return get_config_dir() / PROFILE_FILE_NAME


def resolve_profile_dir(settings: SessionSettings) -> str | None:
    """Return the profile directory to launch the browser with, if any.

    Checked in order: ``session.profile_dir``, ``$SATUTOKO_CHROME_PROFILE``,
    then the contents of the stored profile file.
    """
    if settings.profile_dir:
        return settings.profile_dir

    from_env = os.getenv(ENV_CHROME_PROFILE)
    if from_env:
        return from_env

    profile_file = get_profile_file()
    if not profile_file.is_file():
        return None

    try:
        stored = profile_file.read_text(encoding="utf-8").strip()
    except OSError as e:
        logger.warning(f"Could not read {profile_file}: {e}")
        return None
    return stored or None
