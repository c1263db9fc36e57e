"""Seller-centric scrape state machine.

DiscoverSeed -> IdentifySellers -> PerSellerPerQuery -> Aggregate -> Done

The first keyword is searched once across the whole marketplace. Every
seller found on that page is then visited and searched for each remaining
keyword. Seed products are reused as the first keyword's results for their
seller. One progress event is emitted per finished seller and one ``done``
event per finished run.

Once the session is open, navigation and element errors only empty the
affected (seller, keyword) pair. Provisioning and session errors propagate.
"""

import asyncio
import inspect
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

from ...driver.errors import NavigationFailed
from ...driver.installation import DriverInstallation
from ...driver.page import DRIVER_ERRORS, BrowserPage
from .config import ScraperSettings
from .models import ExtractionAdapter, Product, QueryResult, ScrapeEvent, ShopResult
from .utils import poll_until

logger = logging.getLogger(__name__)

EventCallback = Callable[[ScrapeEvent], Awaitable[None] | None]
SessionFactory = Callable[[Path], Any]


async def emit_event(on_event: EventCallback | None, event: ScrapeEvent) -> None:
    """Deliver ``event`` to a sync or async callback."""
    if on_event is None:
        return
    result = on_event(event)
    if inspect.isawaitable(result):
        await result


@dataclass
class SellerEntry:
    """A seller discovered on the seed page, with what was already found."""

    shop_id: str
    display_name: str = ""
    seed_products: list[Product] = field(default_factory=list)


class ScrapeOrchestrator:
    """Runs one scrape request against one marketplace."""

    def __init__(
        self,
        adapter: ExtractionAdapter,
        installation: DriverInstallation,
        session_factory: SessionFactory,
        settings: ScraperSettings,
        max_products_per_shop: int | None = None,
    ):
        """Initialize the orchestrator.

        Args:
        ----
            adapter: Marketplace adapter chosen for this request
            installation: Driver provisioning, ensured before each run
            session_factory: Called with the driver path, returns an async
                context manager yielding a ``BrowserPage``
            settings: Loaded scraper settings
            max_products_per_shop: Overrides the configured per-shop cap

        Raises:
        ------
            ValueError: If ``max_products_per_shop`` is below 1

        """
        self.adapter = adapter
        self.installation = installation
        self.session_factory = session_factory
        self.timing = settings.timing

        if max_products_per_shop is not None and max_products_per_shop < 1:
            raise ValueError(
                f"max_products_per_shop must be at least 1, got {max_products_per_shop}"
            )

        platform_settings = settings.get_platform_settings(adapter.platform)
        self.max_seed_products = platform_settings.max_seed_products
        self.max_products_per_shop = (
            max_products_per_shop
            if max_products_per_shop is not None
            else platform_settings.max_products_per_shop
        )

    @property
    def selectors(self) -> dict[str, str]:
        return self.adapter.selectors

    async def run(
        self, keywords: list[str], on_event: EventCallback | None = None
    ) -> list[ShopResult]:
        """Scrape ``keywords`` and return one ``ShopResult`` per seller.

        Raises
        ------
            BrowserNotFound, DriverFetchFailed: If no driver could be provisioned
            DriverSpawnFailed, SessionConnectFailed: If no session could be opened

        """
        executable = await self.installation.ensure()

        if not keywords:
            logger.info("No keywords given, nothing to scrape")
            await emit_event(on_event, ScrapeEvent.done())
            return []

        async with self.session_factory(executable) as page:
            shops = await self.scrape_page(page, keywords, on_event)

        await emit_event(on_event, ScrapeEvent.done())
        return shops

    async def scrape_page(
        self,
        page: BrowserPage,
        keywords: list[str],
        on_event: EventCallback | None = None,
    ) -> list[ShopResult]:
        """Run the seller-centric scrape on an open page, without ``done``."""
        platform = self.adapter.platform.value
        logger.info(f"🔍 Scraping {platform} for keywords: {keywords}")

        shops: list[ShopResult] = []
        seed_products = await self.discover_seed(page, keywords[0])
        sellers = self.identify_sellers(seed_products)
        logger.info(f"Found {len(sellers)} sellers on the seed page")

        for index, seller in enumerate(sellers.values(), 1):
            logger.info(f"[{index}/{len(sellers)}] Shop {seller.shop_id}")
            shop = await self.collect_shop(page, seller, keywords)
            shops.append(shop)
            await emit_event(on_event, ScrapeEvent.progress(shop))

        logger.info(f"✅ Finished {platform} scrape with {len(shops)} shops")
        return shops

    async def discover_seed(self, page: BrowserPage, keyword: str) -> list[Product]:
        """Search the whole marketplace for the seed keyword."""
        searched = False
        try:
            await page.goto(self.adapter.home_url)
            searched = await page.submit_search(self.selectors["search_box"], keyword)
        except NavigationFailed as e:
            logger.warning(f"Home page unavailable: {e}")

        try:
            if searched:
                await asyncio.sleep(self.timing.search_settle_sec)
            else:
                logger.info("No usable search box, opening the search URL directly")
                await page.goto(self.adapter.search_url(keyword))
            await asyncio.sleep(self.timing.page_settle_sec)
        except NavigationFailed as e:
            logger.warning(f"Seed search for '{keyword}' failed: {e}")
            return []

        cards = await self.adapter.seed_cards(page)
        logger.info(f"Seed page for '{keyword}' has {len(cards)} product cards")
        return await self.adapter.extract_products(cards, self.max_seed_products)

    def identify_sellers(self, products: list[Product]) -> dict[str, SellerEntry]:
        """Group seed products by seller, in discovery order."""
        sellers: dict[str, SellerEntry] = {}
        for product in products:
            shop_id = self.adapter.shop_id_from_link(product.link)
            if not shop_id:
                logger.debug(f"No seller id in {product.link}")
                continue
            entry = sellers.setdefault(shop_id, SellerEntry(shop_id))
            if not entry.display_name and product.shop_display_name:
                entry.display_name = product.shop_display_name
            entry.seed_products.append(product)
        return sellers

    async def collect_shop(
        self, page: BrowserPage, seller: SellerEntry, keywords: list[str]
    ) -> ShopResult:
        """Assemble one seller's results, one entry per keyword in input order."""
        results = [QueryResult(keywords[0], list(seller.seed_products))]

        for keyword in keywords[1:]:
            products = await self.search_storefront(page, seller, keyword)
            results.append(QueryResult(keyword, products))

        display_name = seller.display_name or seller.shop_id
        for result in results[1:]:
            result.products = [
                p if p.shop_display_name else replace(p, shop_display_name=display_name)
                for p in result.products
            ]

        return ShopResult(
            shop_id=seller.shop_id,
            shop_display_name=display_name,
            shop_url=self.adapter.shop_url(seller.shop_id),
            platform=self.adapter.platform,
            results=results,
        )

    async def search_storefront(
        self, page: BrowserPage, seller: SellerEntry, keyword: str
    ) -> list[Product]:
        """Search one seller's storefront. Any failure gives an empty list."""
        try:
            return await self._search_storefront(page, seller, keyword)
        except (NavigationFailed, *DRIVER_ERRORS) as e:
            logger.warning(f"Shop {seller.shop_id}, '{keyword}': {e}")
            return []

    async def _search_storefront(
        self, page: BrowserPage, seller: SellerEntry, keyword: str
    ) -> list[Product]:
        await page.goto(self.adapter.shop_url(seller.shop_id))

        heading_selector = self.selectors["shop_heading"]
        if await self._poll(lambda: page.exists(heading_selector)):
            if not seller.display_name:
                seller.display_name = await page.text_of(heading_selector) or ""
        else:
            logger.debug(f"Shop heading for {seller.shop_id} did not appear")

        if await page.submit_search(self.selectors["shop_search_box"], keyword):
            await asyncio.sleep(self.timing.search_settle_sec)
            await self._poll(lambda: self._results_or_empty(page))
        else:
            logger.debug(f"No storefront search box on {seller.shop_id}, using URL")
            await page.goto(self.adapter.shop_search_url(seller.shop_id, keyword))
            await asyncio.sleep(self.timing.page_settle_sec)

        if await page.exists(self.selectors["shop_empty"]):
            logger.info(f"Shop {seller.shop_id} has no results for '{keyword}'")
            return []

        cards = await self.adapter.shop_cards(page)
        products = await self.adapter.extract_products(
            cards, self.max_products_per_shop
        )
        logger.info(f"Shop {seller.shop_id}, '{keyword}': {len(products)} products")
        return products

    async def _results_or_empty(self, page: BrowserPage) -> bool:
        if await page.exists(self.selectors["shop_image"]):
            return True
        return await page.exists(self.selectors["shop_empty"])

    async def _poll(self, predicate: Callable[[], Awaitable[bool]]) -> bool:
        return await poll_until(
            predicate,
            interval=self.timing.poll_interval_sec,
            timeout=self.timing.poll_timeout_sec,
        )
