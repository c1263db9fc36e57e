"""Platform-agnostic models for the seller-centric marketplace scraper.

This module defines the result tree (products grouped per query, queries
grouped per shop), the progress events streamed to callers, and the
``ExtractionAdapter`` interface every marketplace implements.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ...driver.page import BrowserPage, PageElement

logger = logging.getLogger(__name__)


class Platform(Enum):
    """Supported marketplaces."""

    TOKOPEDIA = "tokopedia"
    SHOPEE = "shopee"


class EventKind(Enum):
    """Kinds of events emitted while a scrape runs."""

    PROGRESS = "progress"
    DONE = "done"


@dataclass(frozen=True)
class Product:
    """One product card as presented on a search or storefront page.

    All fields are plain strings; fields that could not be read are empty.
    ``link`` is always absolute.
    """

    name: str
    price: str
    shop_display_name: str
    location: str
    photo_url: str
    link: str

    @classmethod
    def create(
        cls,
        name: str | None,
        price: str | None,
        shop_display_name: str | None,
        location: str | None,
        photo_url: str | None,
        link: str | None,
    ) -> "Product | None":
        """Build a product from optional field values.

        Returns
        -------
            None when both name and price are missing, which marks a noise card

        """
        if not name and not price:
            return None
        return cls(
            name=name or "",
            price=price or "",
            shop_display_name=shop_display_name or "",
            location=location or "",
            photo_url=photo_url or "",
            link=link or "",
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "name": self.name,
            "price": self.price,
            "shop_display_name": self.shop_display_name,
            "location": self.location,
            "photo_url": self.photo_url,
            "link": self.link,
        }


@dataclass
class QueryResult:
    """Products found for one keyword, in page order."""

    query: str
    products: list[Product] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "query": self.query,
            "products": [product.to_dict() for product in self.products],
        }


@dataclass
class ShopResult:
    """Everything found for one seller, one ``QueryResult`` per input keyword."""

    shop_id: str
    shop_display_name: str
    shop_url: str
    platform: Platform
    results: list[QueryResult] = field(default_factory=list)

    @property
    def product_count(self) -> int:
        return sum(len(result.products) for result in self.results)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "shop_id": self.shop_id,
            "shop_display_name": self.shop_display_name,
            "shop_url": self.shop_url,
            "platform": self.platform.value,
            "results": [result.to_dict() for result in self.results],
        }


@dataclass(frozen=True)
class ScrapeEvent:
    """Progress notification: a finished shop, or the end of the run."""

    kind: EventKind
    shop: ShopResult | None = None

    @classmethod
    def progress(cls, shop: ShopResult) -> "ScrapeEvent":
        return cls(EventKind.PROGRESS, shop)

    @classmethod
    def done(cls) -> "ScrapeEvent":
        return cls(EventKind.DONE)


class ExtractionAdapter(ABC):
    """Per-marketplace knowledge: URLs, selectors and card extraction.

    The orchestrator only talks to this interface. Subclasses provide the
    default ``SELECTORS``; any key can be overridden from configuration.

    Selector keys used by the orchestrator:
        search_box: Search input on the home page
        result_card: One product card on a search results page
        shop_heading: Seller name heading on a storefront
        shop_search_box: Search input on a storefront
        shop_card: One product card on a storefront results grid
        shop_image: Product image inside the storefront grid
        shop_empty: Marker shown when a storefront search has no results
    """

    HOME_URL: str = ""
    SELECTORS: dict[str, str] = {}

    def __init__(self, selector_overrides: dict[str, str] | None = None):
        self.selectors = {**self.SELECTORS, **(selector_overrides or {})}

    @property
    @abstractmethod
    def platform(self) -> Platform:
        """Return the platform this adapter handles."""

    @property
    def home_url(self) -> str:
        return self.HOME_URL

    @abstractmethod
    def search_url(self, keyword: str) -> str:
        """Return the marketplace-wide search results URL for ``keyword``."""

    @abstractmethod
    def shop_url(self, shop_id: str) -> str:
        """Return the storefront URL for ``shop_id``."""

    @abstractmethod
    def shop_search_url(self, shop_id: str, keyword: str) -> str:
        """Return the storefront search URL for ``keyword``."""

    @abstractmethod
    def shop_id_from_link(self, link: str) -> str | None:
        """Derive the stable seller id from an absolute product link.

        Args:
        ----
            link: Absolute product URL

        Returns:
        -------
            Seller id, or None if the link does not identify a seller

        """

    @abstractmethod
    async def extract_card(self, card: PageElement) -> Product | None:
        """Read one product card. Missing fields become empty strings.

        Returns
        -------
            Product, or None if the card is noise

        """

    async def seed_cards(self, page: BrowserPage) -> list[PageElement]:
        return await page.query_all(self.selectors["result_card"])

    async def shop_cards(self, page: BrowserPage) -> list[PageElement]:
        return await page.query_all(self.selectors["shop_card"])

    async def extract_products(
        self, cards: list[PageElement], limit: int | None = None
    ) -> list[Product]:
        """Extract products from cards in order, stopping at ``limit``."""
        products: list[Product] = []
        for card in cards:
            if limit is not None and len(products) >= limit:
                break
            product = await self.extract_card(card)
            if product is not None:
                products.append(product)
        logger.debug(
            f"{self.platform.value}: extracted {len(products)} of {len(cards)} cards"
        )
        return products


class AdapterRegistry:
    """Registry of extraction adapters keyed by platform."""

    _adapters: dict[Platform, type[ExtractionAdapter]] = {}

    @classmethod
    def register(cls, platform: Platform, adapter_class: type[ExtractionAdapter]):
        cls._adapters[platform] = adapter_class

    @classmethod
    def get_adapter_class(cls, platform: Platform) -> type[ExtractionAdapter] | None:
        return cls._adapters.get(platform)

    @classmethod
    def get_available_platforms(cls) -> list[Platform]:
        return list(cls._adapters.keys())

    @classmethod
    def is_platform_supported(cls, platform: Platform) -> bool:
        return platform in cls._adapters


def register_adapter(platform: Platform):
    """Decorator to register an adapter class for a platform.

    Usage:
        @register_adapter(Platform.TOKOPEDIA)
        class TokopediaAdapter(ExtractionAdapter):
            ...
    """

    def decorator(adapter_class: type[ExtractionAdapter]):
        AdapterRegistry.register(platform, adapter_class)
        return adapter_class

    return decorator
