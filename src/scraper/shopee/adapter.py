"""Shopee Indonesia extraction adapter.

Sellers are identified by the numeric shop id embedded in product links,
either ``/<title>-i.<shopid>.<itemid>`` or ``/product/<shopid>/<itemid>``.
"""

import logging
import re

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

BASE_URL = "https://shopee.co.id"
PRICE_PREFIX = "Rp"

_ITEM_LINK_PATTERNS = (
    re.compile(r"-i\.(\d+)\.(\d+)"),
    re.compile(r"/product/(\d+)/(\d+)"),
)


@register_adapter(Platform.SHOPEE)
class ShopeeAdapter(ExtractionAdapter):
    """Reads Shopee search and storefront product cards."""

    HOME_URL = BASE_URL
    SELECTORS = {
        "search_box": "input.shopee-searchbar-input__input",
        "result_card": ".shopee-search-item-result__item",
        "link": "a[href]",
        "name": ".line-clamp-2.break-words",
        "price": '[data-testid="a11y-label"] + div .truncate.text-base\\/5.font-medium',
        "location": ".text-shopee-black54.font-extralight.text-sp10 .align-middle",
        "photo": "img[alt=\"product-image\"], img[src*='simg'], img[src*='shopee']",
        "shop_heading": ".section-seller-overview-horizontal__portrait-name",
        "shop_search_box": ".shop-search-bar input, input[placeholder*='Cari di toko']",
        "shop_card": ".shop-search-result-view__item",
        "shop_image": ".shop-search-result-view__item img",
        "shop_empty": ".shop-search-result-view__empty",
    }

    PRICE_FALLBACKS = (
        ".text-shopee-primary .truncate.text-base\\/5.font-medium",
        ".flex-shrink.min-w-0.mr-1.truncate.text-shopee-primary "
        ".truncate.text-base\\/5.font-medium",
    )

    @property
    def platform(self) -> Platform:
        return Platform.SHOPEE

    def search_url(self, keyword: str) -> str:
        return f"{BASE_URL}/search?keyword={encode_query(keyword)}"

    def shop_url(self, shop_id: str) -> str:
        return f"{BASE_URL}/shop/{shop_id}"

    def shop_search_url(self, shop_id: str, keyword: str) -> str:
        return f"{BASE_URL}/shop/{shop_id}/search?keyword={encode_query(keyword)}"

    def shop_id_from_link(self, link: str) -> str | None:
        for pattern in _ITEM_LINK_PATTERNS:
            match = pattern.search(link)
            if match:
                return match.group(1)
        return None

    async def extract_card(self, card: PageElement) -> Product | None:
        selectors = self.selectors

        raw_link = await first_attribute(card, "href", selectors["link"])
        if raw_link is None:
            raw_link = await card_link(card)
        link = normalize_link(raw_link, BASE_URL)

        price = await first_text(card, selectors["price"], *self.PRICE_FALLBACKS)
        if price and not price.startswith(PRICE_PREFIX):
            price = PRICE_PREFIX + price

        photo = await first_attribute(card, "src", selectors["photo"], "img")

        # Search cards carry no seller name; the storefront heading fills it.
        return Product.create(
            name=await first_text(card, selectors["name"]),
            price=price,
            shop_display_name=None,
            location=await first_text(card, selectors["location"]),
            photo_url=photo,
            link=link,
        )
