"""Pytest configuration and shared fixtures for scraper tests."""

import logging
import tempfile
from collections.abc import Callable, Generator
from contextlib import asynccontextmanager
from pathlib import Path
from unittest.mock import AsyncMock

import pytest
from aioresponses import aioresponses

from src.driver.errors import NavigationFailed
from src.scraper.base.config import ScraperSettings, reset_settings
from src.scraper.base.models import ExtractionAdapter, Platform, Product
from src.scraper.base.utils import card_link, first_text, normalize_link


class FakeElement:
    """Stand-in for ``PageElement`` built from plain data."""

    def __init__(
        self,
        text: str | None = None,
        attrs: dict[str, str] | None = None,
        children: dict[str, list["FakeElement"]] | None = None,
    ):
        self._text = text
        self._attrs = attrs or {}
        self._children = children or {}

    async def text(self) -> str | None:
        return self._text

    async def attribute(self, name: str) -> str | None:
        return self._attrs.get(name)

    async def query_all(self, selector: str) -> list["FakeElement"]:
        return list(self._children.get(selector, []))


class FakePage:
    """Stand-in for ``BrowserPage`` serving canned DOM per URL.

    Args:
    ----
        pages: URL -> selector -> elements present on that page
        search_targets: URL -> function mapping typed text to the URL the
            search box leads to. Pages without an entry have no usable box.
        failing_urls: URLs whose navigation raises ``NavigationFailed``

    """

    def __init__(
        self,
        pages: dict[str, dict[str, list[FakeElement]]] | None = None,
        search_targets: dict[str, Callable[[str], str]] | None = None,
        failing_urls: tuple[str, ...] = (),
    ):
        self.pages = pages or {}
        self.search_targets = search_targets or {}
        self.failing_urls = failing_urls
        self.url = ""
        self.visits: list[str] = []
        self.searches: list[tuple[str, str]] = []

    async def goto(self, url: str) -> None:
        self.visits.append(url)
        if url in self.failing_urls:
            raise NavigationFailed(f"Failed to open {url}")
        self.url = url

    async def query_all(self, selector: str) -> list[FakeElement]:
        return list(self.pages.get(self.url, {}).get(selector, []))

    async def query(self, selector: str) -> FakeElement | None:
        found = await self.query_all(selector)
        return found[0] if found else None

    async def exists(self, selector: str) -> bool:
        return bool(await self.query_all(selector))

    async def text_of(self, selector: str) -> str | None:
        element = await self.query(selector)
        return await element.text() if element else None

    async def submit_search(self, selector: str, text: str) -> bool:
        target = self.search_targets.get(self.url)
        if target is None or not await self.exists(selector):
            return False
        self.searches.append((self.url, text))
        self.url = target(text)
        return True


STUB_BASE_URL = "https://shop.test"


class StubAdapter(ExtractionAdapter):
    """Adapter for a made-up marketplace at ``shop.test``.

    Product links look like ``/<shop>/<item>``.
    """

    HOME_URL = STUB_BASE_URL + "/"
    SELECTORS = {
        "search_box": "input.search",
        "result_card": "div.card",
        "shop_heading": "h1.shop",
        "shop_search_box": "input.shop-search",
        "shop_card": "div.shop-card",
        "shop_image": "img.shop-img",
        "shop_empty": "div.empty",
        "name": "span.name",
        "price": "span.price",
        "shop": "span.shop",
    }

    @property
    def platform(self) -> Platform:
        return Platform.TOKOPEDIA

    def search_url(self, keyword: str) -> str:
        return f"{STUB_BASE_URL}/search?q={keyword}"

    def shop_url(self, shop_id: str) -> str:
        return f"{STUB_BASE_URL}/{shop_id}"

    def shop_search_url(self, shop_id: str, keyword: str) -> str:
        return f"{STUB_BASE_URL}/{shop_id}/search?q={keyword}"

    def shop_id_from_link(self, link: str) -> str | None:
        if not link.startswith(STUB_BASE_URL + "/"):
            return None
        return link[len(STUB_BASE_URL) + 1 :].split("/")[0] or None

    async def extract_card(self, card) -> Product | None:
        return Product.create(
            name=await first_text(card, self.selectors["name"]),
            price=await first_text(card, self.selectors["price"]),
            shop_display_name=await first_text(card, self.selectors["shop"]),
            location=None,
            photo_url=None,
            link=normalize_link(await card_link(card), STUB_BASE_URL),
        )


def stub_card(
    shop: str, item: str, shop_name: str | None = None, price: str = "Rp10.000"
) -> FakeElement:
    """A result card for ``StubAdapter``."""
    children = {
        "span.name": [FakeElement(f"Product {item}")],
        "span.price": [FakeElement(price)],
    }
    if shop_name:
        children["span.shop"] = [FakeElement(shop_name)]
    return FakeElement(attrs={"href": f"/{shop}/{item}"}, children=children)


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmp_dir:
        yield Path(tmp_dir)


@pytest.fixture(autouse=True)
def fresh_settings() -> Generator[None, None, None]:
    """Make every test load settings from scratch."""
    reset_settings()
    yield
    reset_settings()


@pytest.fixture
def fast_settings() -> ScraperSettings:
    """Settings with all waits shrunk to near zero."""
    return ScraperSettings(
        session={"startup_delay_sec": 0},
        timing={
            "search_settle_sec": 0,
            "page_settle_sec": 0,
            "poll_interval_sec": 0.01,
            "poll_timeout_sec": 0.05,
        },
    )


@pytest.fixture
def stub_adapter() -> StubAdapter:
    return StubAdapter()


@pytest.fixture
def mock_installation(temp_dir: Path) -> AsyncMock:
    """Installation whose ``ensure()`` returns a fixed driver path."""
    installation = AsyncMock()
    installation.ensure.return_value = temp_dir / "chromedriver_PATCHED"
    return installation


@pytest.fixture
def session_factory_for() -> Callable:
    """Build a session factory yielding ``page`` and recording driver paths."""

    def build(page: FakePage):
        opened: list[Path] = []

        @asynccontextmanager
        async def factory(executable_path: Path):
            opened.append(executable_path)
            yield page

        factory.opened = opened  # type: ignore[attr-defined]
        return factory

    return build


@pytest.fixture
def mock_aioresponses() -> Generator[aioresponses, None, None]:
    """Mock aiohttp responses for testing."""
    with aioresponses() as m:
        yield m


@pytest.fixture
def restore_logging() -> Generator[None, None, None]:
    """Put the root logger back the way it was after a test reconfigures it."""
    root_logger = logging.getLogger()
    handlers = root_logger.handlers[:]
    level = root_logger.level
    yield
    for handler in root_logger.handlers[:]:
        if handler not in handlers:
            handler.close()
        root_logger.removeHandler(handler)
    for handler in handlers:
        root_logger.addHandler(handler)
    root_logger.setLevel(level)
