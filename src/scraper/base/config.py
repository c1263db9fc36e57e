"""Scraper configuration loaded from ``config/scrapers.yaml``.

Every section has defaults, so a missing file yields a working configuration.
A few values can be overridden from the environment (``.env`` is honoured by
the CLI):

    SATUTOKO_CONFIG          Path of the YAML file
    SATUTOKO_DRIVER_DIR      Driver install directory
    SATUTOKO_CHROME_PROFILE  Browser profile directory
"""

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, ValidationError, model_validator

from ...driver.fetcher import DEFAULT_CATALOG_URL
from ...driver.session import DEFAULT_USER_AGENT
from .models import Platform

logger = logging.getLogger(__name__)

ENV_CONFIG_PATH = "SATUTOKO_CONFIG"
ENV_DRIVER_DIR = "SATUTOKO_DRIVER_DIR"
ENV_CHROME_PROFILE = "SATUTOKO_CHROME_PROFILE"

DEFAULT_CONFIG_PATH = (
    Path(__file__).resolve().parent.parent.parent.parent / "config" / "scrapers.yaml"
)


class DriverSettings(BaseModel):
    install_dir: str | None = Field(
        None, description="Driver install directory. Defaults to the local data dir."
    )
    catalog_url: str = Field(DEFAULT_CATALOG_URL)
    download_timeout_sec: float = Field(120.0, gt=0)


class SessionSettings(BaseModel):
    port_range: tuple[int, int] = Field(
        (5000, 9000), description="Half-open range the driver port is drawn from"
    )
    startup_delay_sec: float = Field(2.0, ge=0)
    window_size: tuple[int, int] = Field((1920, 1080))
    user_agent: str = Field(DEFAULT_USER_AGENT)
    disable_sandbox: bool = Field(True)
    profile_dir: str | None = Field(None)

    @model_validator(mode="after")
    def validate_port_range(self) -> "SessionSettings":
        low, high = self.port_range
        if not 0 < low < high <= 65536:
            raise ValueError(f"Invalid port_range {self.port_range}")
        return self


class TimingSettings(BaseModel):
    search_settle_sec: float = Field(1.0, ge=0)
    page_settle_sec: float = Field(2.0, ge=0)
    poll_interval_sec: float = Field(0.5, gt=0)
    poll_timeout_sec: float = Field(6.0, ge=0)


class PlatformSettings(BaseModel):
    enabled: bool = Field(True)
    max_seed_products: int | None = Field(
        20, ge=1, description="Cards read from the seed search page"
    )
    max_products_per_shop: int = Field(
        10, ge=1, description="Cards read per shop per keyword"
    )
    selectors: dict[str, str] = Field(
        default_factory=dict, description="Overrides of the adapter's CSS selectors"
    )


class ScraperSettings(BaseModel):
    driver: DriverSettings = Field(default_factory=DriverSettings)
    session: SessionSettings = Field(default_factory=SessionSettings)
    timing: TimingSettings = Field(default_factory=TimingSettings)
    scrapers: dict[str, PlatformSettings] = Field(default_factory=dict)

    def get_platform_settings(self, platform: Platform) -> PlatformSettings:
        return self.scrapers.get(platform.value) or PlatformSettings()

    def is_platform_enabled(self, platform: Platform) -> bool:
        return self.get_platform_settings(platform).enabled

    def get_enabled_platforms(self) -> list[Platform]:
        return [p for p in Platform if self.is_platform_enabled(p)]


def _apply_env_overrides(settings: ScraperSettings) -> ScraperSettings:
    driver_dir = os.getenv(ENV_DRIVER_DIR)
    if driver_dir:
        settings.driver.install_dir = driver_dir
    return settings


def load_settings(config_path: Path | None = None) -> ScraperSettings:
    """Load and validate scraper settings.

    Args:
    ----
        config_path: YAML file to read. Defaults to ``$SATUTOKO_CONFIG`` or
            ``config/scrapers.yaml`` at the project root.

    Returns:
    -------
        Validated settings, with defaults when the file does not exist

    Raises:
    ------
        ValueError: If the file is not a mapping or fails validation

    """
    if config_path is None:
        env_path = os.getenv(ENV_CONFIG_PATH)
        config_path = Path(env_path) if env_path else DEFAULT_CONFIG_PATH

    if not config_path.is_file():
        logger.info(f"No scraper config at {config_path}, using defaults")
        return _apply_env_overrides(ScraperSettings())

    logger.info(f"Loading scraper config from: {config_path}")
    try:
        with open(config_path, encoding="utf-8") as f:
            config_data = yaml.safe_load(f) or {}
    except yaml.YAMLError as e:
        logger.error(f"Error parsing config file: {e}")
        raise ValueError(f"Invalid YAML in {config_path}") from e

    if not isinstance(config_data, dict):
        raise ValueError("Config file is not a valid dictionary.")

    try:
        settings = ScraperSettings(**config_data)
    except ValidationError as e:
        logger.error(f"Config validation error: {e}")
        raise ValueError("Config validation failed.") from e

    return _apply_env_overrides(settings)


# Global settings instance
_settings: ScraperSettings | None = None


def get_settings(config_path: Path | None = None) -> ScraperSettings:
    """Get the global settings instance.

    Args:
    ----
        config_path: Path to configuration file (only used on first call)

    """
    global _settings

    if _settings is None:
        _settings = load_settings(config_path)

    return _settings


def reset_settings() -> None:
    """Forget the cached settings so the next call reloads them."""
    global _settings
    _settings = None
