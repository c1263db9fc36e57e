"""Tests for the Tokopedia and Shopee extraction adapters."""

import pytest
from conftest import FakeElement

from src.scraper.base.models import Platform, Product
from src.scraper.shopee import ShopeeAdapter
from src.scraper.tokopedia import TokopediaAdapter


def tokopedia_card(
    adapter: TokopediaAdapter,
    href: str,
    name: str | None = "Sepatu Lari Pria",
    price: str | None = "Rp250.000",
    shop: str | None = "Toko Sepatu Jaya",
    location: str | None = "Jakarta Barat",
    photo: str | None = "https://images.tokopedia.net/img/sepatu.jpg",
) -> FakeElement:
    selectors = adapter.selectors
    children = {}
    if name is not None:
        # Leading empty span mirrors the badge spans in real cards
        children[selectors["name"]] = [FakeElement(None), FakeElement(name)]
    if price is not None:
        children[selectors["price"]] = [FakeElement(price)]
    if shop is not None:
        children[selectors["shop"]] = [FakeElement(shop)]
    if location is not None:
        children[selectors["location"]] = [FakeElement(location)]
    if photo is not None:
        children[selectors["photo"]] = [FakeElement(attrs={"src": photo})]
    return FakeElement(attrs={"href": href}, children=children)


def shopee_card(
    adapter: ShopeeAdapter,
    href: str = "/Tas-Ransel-Kanvas-i.123456.789012",
    price_selector: str | None = None,
    price: str = "89.000",
    photo_selector: str | None = None,
) -> FakeElement:
    selectors = adapter.selectors
    children = {
        selectors["link"]: [FakeElement(attrs={"href": href})],
        selectors["name"]: [FakeElement("Tas Ransel Kanvas")],
        price_selector or selectors["price"]: [FakeElement(price)],
        selectors["location"]: [FakeElement("KOTA BANDUNG")],
        photo_selector or selectors["photo"]: [
            FakeElement(attrs={"src": "https://down-id.img.susercontent.com/file/x"})
        ],
    }
    return FakeElement(children=children)


class TestTokopediaAdapter:
    """Test Tokopedia URLs and card extraction."""

    @pytest.fixture
    def adapter(self) -> TokopediaAdapter:
        return TokopediaAdapter()

    @pytest.mark.unit
    def test_urls(self, adapter: TokopediaAdapter):
        assert adapter.platform is Platform.TOKOPEDIA
        assert adapter.home_url == "https://www.tokopedia.com"
        assert adapter.search_url("sepatu lari") == (
            "https://www.tokopedia.com/search?q=sepatu%20lari"
        )
        assert adapter.shop_url("tokosepatu") == "https://www.tokopedia.com/tokosepatu"
        assert adapter.shop_search_url("tokosepatu", "tas") == (
            "https://www.tokopedia.com/tokosepatu/product?q=tas"
        )

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "link, expected",
        [
            ("https://www.tokopedia.com/tokosepatu/sepatu-lari-123", "tokosepatu"),
            ("https://www.tokopedia.com/tokosepatu", None),
            ("https://www.tokopedia.com/discovery", None),
            ("https://www.tokopedia.com/tokosepatu/", None),
            ("https://ta.tokopedia.com/promo/v1/clicks/8a-xZ", None),
            ("https://www.tokopedia.com/", None),
        ],
    )
    def test_shop_id_from_link(self, adapter: TokopediaAdapter, link, expected):
        assert adapter.shop_id_from_link(link) == expected

    @pytest.mark.asyncio
    async def test_extract_card(self, adapter: TokopediaAdapter):
        card = tokopedia_card(adapter, "/tokosepatu/sepatu-lari-pria")

        product = await adapter.extract_card(card)

        assert product == Product(
            name="Sepatu Lari Pria",
            price="Rp250.000",
            shop_display_name="Toko Sepatu Jaya",
            location="Jakarta Barat",
            photo_url="https://images.tokopedia.net/img/sepatu.jpg",
            link="https://www.tokopedia.com/tokosepatu/sepatu-lari-pria",
        )

    @pytest.mark.asyncio
    async def test_protocol_relative_link(self, adapter: TokopediaAdapter):
        card = tokopedia_card(adapter, "//www.tokopedia.com/tokosepatu/item-1")
        product = await adapter.extract_card(card)
        assert product.link == "https://www.tokopedia.com/tokosepatu/item-1"

    @pytest.mark.asyncio
    async def test_missing_fields_become_empty(self, adapter: TokopediaAdapter):
        card = tokopedia_card(
            adapter, "/tokosepatu/item-2", shop=None, location=None, photo=None
        )
        product = await adapter.extract_card(card)
        assert product.shop_display_name == ""
        assert product.location == ""
        assert product.photo_url == ""

    @pytest.mark.asyncio
    async def test_noise_card_dropped(self, adapter: TokopediaAdapter):
        card = tokopedia_card(adapter, "/tokosepatu/item-3", name=None, price=None)
        assert await adapter.extract_card(card) is None

    @pytest.mark.asyncio
    async def test_pagination_link_skipped(self, adapter: TokopediaAdapter):
        card = tokopedia_card(adapter, "/tokosepatu/product?perpage=80&page=2")
        assert await adapter.extract_card(card) is None

    @pytest.mark.asyncio
    async def test_extract_products_respects_limit(self, adapter: TokopediaAdapter):
        cards = [tokopedia_card(adapter, f"/toko/item-{i}") for i in range(5)]
        products = await adapter.extract_products(cards, limit=3)
        assert [p.link.rsplit("-", 1)[1] for p in products] == ["0", "1", "2"]

    @pytest.mark.unit
    def test_selector_overrides(self):
        adapter = TokopediaAdapter(selector_overrides={"shop_heading": "h1.name"})
        assert adapter.selectors["shop_heading"] == "h1.name"
        assert adapter.selectors["result_card"] == TokopediaAdapter.SELECTORS["result_card"]


class TestShopeeAdapter:
    """Test Shopee URLs and card extraction."""

    @pytest.fixture
    def adapter(self) -> ShopeeAdapter:
        return ShopeeAdapter()

    @pytest.mark.unit
    def test_urls(self, adapter: ShopeeAdapter):
        assert adapter.platform is Platform.SHOPEE
        assert adapter.search_url("tas") == "https://shopee.co.id/search?keyword=tas"
        assert adapter.shop_url("123456") == "https://shopee.co.id/shop/123456"
        assert adapter.shop_search_url("123456", "tas kulit") == (
            "https://shopee.co.id/shop/123456/search?keyword=tas%20kulit"
        )

    @pytest.mark.unit
    @pytest.mark.parametrize(
        "link, expected",
        [
            ("https://shopee.co.id/Tas-Ransel-i.123456.789012", "123456"),
            ("https://shopee.co.id/product/555/777?sp_atk=abc", "555"),
            ("https://shopee.co.id/shop/123456", None),
        ],
    )
    def test_shop_id_from_link(self, adapter: ShopeeAdapter, link, expected):
        assert adapter.shop_id_from_link(link) == expected

    @pytest.mark.asyncio
    async def test_extract_card(self, adapter: ShopeeAdapter):
        product = await adapter.extract_card(shopee_card(adapter))

        assert product.name == "Tas Ransel Kanvas"
        assert product.price == "Rp89.000"
        assert product.location == "KOTA BANDUNG"
        assert product.link == "https://shopee.co.id/Tas-Ransel-Kanvas-i.123456.789012"
        assert product.photo_url.startswith("https://down-id.img.susercontent.com")
        assert adapter.shop_id_from_link(product.link) == "123456"

    @pytest.mark.asyncio
    async def test_price_fallback_selector(self, adapter: ShopeeAdapter):
        card = shopee_card(
            adapter, price_selector=ShopeeAdapter.PRICE_FALLBACKS[0], price="Rp12.500"
        )
        product = await adapter.extract_card(card)
        assert product.price == "Rp12.500"

    @pytest.mark.asyncio
    async def test_photo_falls_back_to_any_image(self, adapter: ShopeeAdapter):
        card = shopee_card(adapter, photo_selector="img")
        product = await adapter.extract_card(card)
        assert product.photo_url.startswith("https://down-id.img.susercontent.com")
