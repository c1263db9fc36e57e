"""Tokopedia extraction adapter.

Sellers are identified by the shop slug, the first path segment of a
product link (``https://www.tokopedia.com/<slug>/<product>``).
"""

import logging
from urllib.parse import urlparse

from ...driver.page import PageElement
from ..base.models import ExtractionAdapter, Platform, Product, register_adapter
from ..base.utils import (
    card_link,
    encode_query,
    first_attribute,
    first_text,
    normalize_link,
)

logger = logging.getLogger(__name__)

TOKOPEDIA_HOST = "www.tokopedia.com"
BASE_URL = f"https://{TOKOPEDIA_HOST}"

# Pagination anchors share the product grid container.
PAGINATION_MARKER = "/product?perpage="


@register_adapter(Platform.TOKOPEDIA)
class TokopediaAdapter(ExtractionAdapter):
    """Reads Tokopedia search and storefront product cards."""

    HOME_URL = BASE_URL
    SELECTORS = {
        "search_box": 'input[data-unify="Search"]',
        "result_card": 'div[data-ssr="contentProductsSRPSSR"] a',
        "name": "div:nth-child(1) > div:nth-child(2) > div:nth-child(1) span",
        "price": "div > div:nth-child(2) > div:nth-child(2)",
        "shop": "span.flip",
        "location": "div > div:nth-child(2) > div:nth-child(3) span:nth-child(2)",
        "photo": 'img[alt="product-image"]',
        "shop_heading": 'h1[data-testid="shopNameHeader"]',
        "shop_search_box": 'input[data-testid="shopSearchInput"]',
        "shop_card": 'div[data-testid="master-product-card"]',
        "shop_image": 'div[data-testid="master-product-card"] img',
        "shop_empty": 'div[data-testid="shopEmptyState"]',
    }

    @property
    def platform(self) -> Platform:
        return Platform.TOKOPEDIA

    def search_url(self, keyword: str) -> str:
        return f"{BASE_URL}/search?q={encode_query(keyword)}"

    def shop_url(self, shop_id: str) -> str:
        return f"{BASE_URL}/{shop_id}"

    def shop_search_url(self, shop_id: str, keyword: str) -> str:
        return f"{BASE_URL}/{shop_id}/product?q={encode_query(keyword)}"

    def shop_id_from_link(self, link: str) -> str | None:
        parsed = urlparse(link)
        if parsed.netloc != TOKOPEDIA_HOST:
            return None
        # Product pages are /<shop slug>/<product slug>
        segments = [s for s in parsed.path.split("/") if s]
        if len(segments) < 2:
            return None
        return segments[0]

    async def extract_card(self, card: PageElement) -> Product | None:
        raw_link = await card_link(card)
        if raw_link and PAGINATION_MARKER in raw_link:
            return None
        link = normalize_link(raw_link, BASE_URL)

        selectors = self.selectors
        return Product.create(
            name=await first_text(card, selectors["name"]),
            price=await first_text(card, selectors["price"]),
            shop_display_name=await first_text(card, selectors["shop"]),
            location=await first_text(card, selectors["location"]),
            photo_url=await first_attribute(card, "src", selectors["photo"]),
            link=link,
        )
