"""Seller-centric marketplace scraper with factory and registry support.

Architecture:
    - base/: Platform-agnostic foundation (models, config, orchestration)
    - tokopedia/: Tokopedia adapter
    - shopee/: Shopee adapter

Usage:
    # Using the factory
    adapter = AdapterFactory.create_adapter(Platform.TOKOPEDIA)

    # Through the service facade
    from src.scraper.service import ScraperService
    shops = await ScraperService().scrape(["sepatu", "tas"], Platform.SHOPEE)
"""

import logging

from ..driver.errors import UnsupportedPlatform
from .base import (
    AdapterRegistry,
    ExtractionAdapter,
    Platform,
    Product,
    QueryResult,
    ScrapeEvent,
    ScraperSettings,
    ShopResult,
    get_settings,
)

logger = logging.getLogger(__name__)


class AdapterFactory:
    """Factory for platform-specific extraction adapters.

    The adapter is chosen once per request; the orchestrator only ever sees
    the ``ExtractionAdapter`` interface.
    """

    @classmethod
    def create_adapter(
        cls, platform: Platform | str, settings: ScraperSettings | None = None
    ) -> ExtractionAdapter:
        """Create an adapter instance for the specified platform.

        Args:
        ----
            platform: The platform, as enum or its string value
            settings: Settings to read enablement and selector overrides from

        Returns:
        -------
            Platform-specific adapter instance

        Raises:
        ------
            UnsupportedPlatform: If the platform is unknown or disabled

        """
        platform = cls.parse_platform(platform)
        settings = settings or get_settings()

        cls._auto_import_platforms()
        if not AdapterRegistry.is_platform_supported(platform):
            available = AdapterRegistry.get_available_platforms()
            raise UnsupportedPlatform(
                f"Platform {platform.value} is not supported. "
                f"Available platforms: {[p.value for p in available]}"
            )

        if not settings.is_platform_enabled(platform):
            raise UnsupportedPlatform(
                f"Platform {platform.value} is not enabled in configuration. "
                f"Set 'scrapers.{platform.value}.enabled: true' in config file."
            )

        adapter_class = AdapterRegistry.get_adapter_class(platform)
        overrides = settings.get_platform_settings(platform).selectors
        return adapter_class(selector_overrides=overrides)

    @classmethod
    def create_enabled_adapters(
        cls, settings: ScraperSettings | None = None
    ) -> list[ExtractionAdapter]:
        """Create one adapter per enabled platform, in ``Platform`` order.

        Raises
        ------
            UnsupportedPlatform: If no platform is enabled

        """
        settings = settings or get_settings()
        cls._auto_import_platforms()
        platforms = [
            p
            for p in settings.get_enabled_platforms()
            if AdapterRegistry.is_platform_supported(p)
        ]
        if not platforms:
            raise UnsupportedPlatform("No platform is enabled in configuration")
        return [cls.create_adapter(p, settings) for p in platforms]

    @staticmethod
    def parse_platform(platform: Platform | str) -> Platform:
        """Map a platform name to the enum.

        Raises
        ------
            UnsupportedPlatform: If the name is not a known platform

        """
        if isinstance(platform, Platform):
            return platform
        try:
            return Platform(platform.strip().lower())
        except ValueError as e:
            raise UnsupportedPlatform(f"Unsupported platform: {platform}") from e

    @classmethod
    def get_available_platforms(cls) -> list[Platform]:
        cls._auto_import_platforms()
        return AdapterRegistry.get_available_platforms()

    @classmethod
    def _auto_import_platforms(cls) -> None:
        """Import the platform packages so their adapters register."""
        from . import shopee, tokopedia  # noqa: F401


__all__ = [
    "AdapterFactory",
    "Platform",
    "Product",
    "QueryResult",
    "ScrapeEvent",
    "ShopResult",
]
