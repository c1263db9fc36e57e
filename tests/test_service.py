"""Tests for the caller-facing service and command-line interface."""

import asyncio
import json
from contextlib import asynccontextmanager
from pathlib import Path
from unittest.mock import AsyncMock, Mock, patch

import pytest

from src.driver.errors import BrowserNotFound, UnsupportedPlatform
from src.scraper import cli
from src.scraper.base.config import ScraperSettings
from src.scraper.base.models import EventKind, Platform, QueryResult, ShopResult
from src.scraper.base.orchestrator import ScrapeOrchestrator
from src.scraper.service import ScraperService, get_install_lock


@pytest.fixture
def installation(temp_dir: Path) -> Mock:
    installation = Mock()
    installation.install_dir = temp_dir / "chromedriver"
    installation.ensure = AsyncMock(return_value=temp_dir / "chromedriver_PATCHED")
    installation.redownload = AsyncMock(return_value=temp_dir / "chromedriver_PATCHED")
    installation.version_info = AsyncMock(return_value=("116.0.5845.96", "116.0.5845.96"))
    return installation


def sample_shop() -> ShopResult:
    return ShopResult(
        shop_id="tokosepatu",
        shop_display_name="Toko Sepatu",
        shop_url="https://www.tokopedia.com/tokosepatu",
        platform=Platform.TOKOPEDIA,
        results=[QueryResult("sepatu"), QueryResult("tas")],
    )


class TestScraperService:
    """Test the service facade."""

    @pytest.mark.asyncio
    async def test_driver_operations(self, installation: Mock):
        service = ScraperService(ScraperSettings(), installation)

        assert await service.ensure_driver() == installation.ensure.return_value
        assert await service.redownload_driver() == installation.redownload.return_value
        assert await service.get_version_info() == ("116.0.5845.96", "116.0.5845.96")

    @pytest.mark.asyncio
    async def test_scrape_empty_keywords(self, installation: Mock):
        service = ScraperService(ScraperSettings(), installation)
        events = []

        with patch("src.scraper.service.AutomationSession") as session_class:
            shops = await service.scrape([], "shopee", events.append)

        assert shops == []
        assert [e.kind for e in events] == [EventKind.DONE]
        installation.ensure.assert_awaited_once()
        session_class.assert_not_called()

    @pytest.mark.asyncio
    async def test_scrape_unknown_platform(self, installation: Mock):
        service = ScraperService(ScraperSettings(), installation)

        with pytest.raises(UnsupportedPlatform):
            await service.scrape(["sepatu"], "lazada")
        installation.ensure.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_scrape_all_shares_one_session(self, installation: Mock):
        service = ScraperService(ScraperSettings(), installation)
        page = object()
        opened = []
        scraped = []
        events = []

        @asynccontextmanager
        async def fake_session(path, options):
            opened.append(path)
            yield page

        async def fake_scrape_page(orchestrator, shared_page, keywords, on_event):
            assert shared_page is page
            scraped.append(orchestrator.adapter.platform)
            shop = sample_shop()
            shop.platform = orchestrator.adapter.platform
            return [shop]

        with (
            patch("src.scraper.service.AutomationSession", side_effect=fake_session),
            patch.object(ScrapeOrchestrator, "scrape_page", fake_scrape_page),
        ):
            shops = await service.scrape(["sepatu", "tas"], "all", events.append)

        assert opened == [installation.ensure.return_value]
        assert scraped == [Platform.TOKOPEDIA, Platform.SHOPEE]
        assert [s.platform for s in shops] == [Platform.TOKOPEDIA, Platform.SHOPEE]
        assert [e.kind for e in events] == [EventKind.DONE]
        installation.ensure.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_scrape_all_empty_keywords(self, installation: Mock):
        service = ScraperService(ScraperSettings(), installation)
        events = []

        with patch("src.scraper.service.AutomationSession") as session_class:
            assert await service.scrape([], "all", events.append) == []

        assert [e.kind for e in events] == [EventKind.DONE]
        session_class.assert_not_called()

    @pytest.mark.asyncio
    async def test_scrape_rejects_zero_limit(self, installation: Mock):
        service = ScraperService(ScraperSettings(), installation)

        with pytest.raises(ValueError):
            await service.scrape(["sepatu"], "tokopedia", limit=0)
        installation.ensure.assert_not_awaited()


    @pytest.mark.unit
    def test_session_options_from_settings(self, installation: Mock):
        settings = ScraperSettings(
            session={"port_range": [7000, 7001], "profile_dir": "/profiles/scraper"}
        )
        options = ScraperService(settings, installation).session_options()

        assert options.port_range == (7000, 7001)
        assert options.profile_dir == "/profiles/scraper"

    @pytest.mark.unit
    def test_lock_per_install_dir(self, temp_dir: Path):
        assert get_install_lock(temp_dir / "a") is get_install_lock(temp_dir / "a")
        assert get_install_lock(temp_dir / "a") is not get_install_lock(temp_dir / "b")

    @pytest.mark.asyncio
    async def test_concurrent_redownloads_serialised(self, installation: Mock):
        active = []
        overlaps = []

        async def slow_redownload():
            active.append(1)
            overlaps.append(len(active))
            await asyncio.sleep(0.01)
            active.pop()
            return installation.install_dir / "chromedriver_PATCHED"

        installation.redownload = AsyncMock(side_effect=slow_redownload)
        service = ScraperService(ScraperSettings(), installation)

        await asyncio.gather(service.redownload_driver(), service.redownload_driver())

        assert overlaps == [1, 1]


class TestCli:
    """Test argument handling and command dispatch."""

    @pytest.mark.unit
    def test_parse_scrape(self):
        args = cli.build_parser().parse_args(
            ["scrape", "sepatu", "tas", "--platform", "shopee", "--limit", "5"]
        )
        assert args.command == "scrape"
        assert args.keywords == ["sepatu", "tas"]
        assert args.platform == "shopee"
        assert args.limit == 5

    @pytest.mark.unit
    def test_platform_choices(self):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(["scrape", "sepatu", "--platform", "amazon"])

    @pytest.mark.unit
    def test_version_command(
        self, temp_dir: Path, capsys: pytest.CaptureFixture, restore_logging
    ):
        service = Mock()
        service.get_version_info = AsyncMock(return_value=("120.0.1", "120.0.2"))

        with patch.object(cli, "ScraperService", return_value=service):
            code = cli.main(["--log-dir", str(temp_dir), "version"])

        assert code == 0
        out = capsys.readouterr().out
        assert "Chrome: 120.0.1" in out
        assert "ChromeDriver: 120.0.2" in out
        assert (temp_dir / "scraper.log").exists()

    @pytest.mark.unit
    def test_scrape_prints_json(
        self, temp_dir: Path, capsys: pytest.CaptureFixture, restore_logging
    ):
        async def fake_scrape(keywords, platform, on_event=None, limit=None):
            assert keywords == ["sepatu", "tas"]
            assert platform == "tokopedia"
            return [sample_shop()]

        service = Mock()
        service.scrape = AsyncMock(side_effect=fake_scrape)

        with patch.object(cli, "ScraperService", return_value=service):
            code = cli.main(["--log-dir", str(temp_dir), "scrape", "sepatu", " tas "])

        assert code == 0
        payload = json.loads(capsys.readouterr().out)
        assert payload[0]["shop_id"] == "tokosepatu"
        assert [r["query"] for r in payload[0]["results"]] == ["sepatu", "tas"]

    @pytest.mark.unit
    def test_scraper_error_exit_code(
        self, temp_dir: Path, capsys: pytest.CaptureFixture, restore_logging
    ):
        service = Mock()
        service.ensure_driver = AsyncMock(side_effect=BrowserNotFound("no chrome"))

        with patch.object(cli, "ScraperService", return_value=service):
            code = cli.main(["--log-dir", str(temp_dir), "ensure-driver"])

        assert code == 1
        assert "no chrome" in capsys.readouterr().err

    @pytest.mark.unit
    @pytest.mark.parametrize("value", ["0", "-3", "many"])
    def test_limit_must_be_positive(self, value: str):
        with pytest.raises(SystemExit):
            cli.build_parser().parse_args(["scrape", "sepatu", "--limit", value])

    @pytest.mark.unit
    def test_parse_all_platforms(self):
        args = cli.build_parser().parse_args(["scrape", "sepatu", "--platform", "all"])
        assert args.platform == "all"
        assert args.limit is None
