"""Caller-facing operations: provision the driver, report versions, scrape.

The driver install directory is shared state, so provisioning calls on the
same directory are serialised with one ``asyncio.Lock`` per directory. Scrape
runs hold the lock only while the driver is being ensured.
"""

import asyncio
import logging
from pathlib import Path

from ..driver.fetcher import DriverFetcher
from ..driver.installation import DriverInstallation
from ..driver.session import AutomationSession, SessionOptions
from . import AdapterFactory
from .base.config import ScraperSettings, get_settings
from .base.models import Platform, ScrapeEvent, ShopResult
from .base.orchestrator import EventCallback, ScrapeOrchestrator, emit_event
from .base.profile import resolve_profile_dir

logger = logging.getLogger(__name__)

ALL_PLATFORMS = "all"

_install_locks: dict[Path, asyncio.Lock] = {}


def get_install_lock(install_dir: Path) -> asyncio.Lock:
    """Return the lock guarding ``install_dir``, creating it on first use."""
    key = install_dir.resolve()
    if key not in _install_locks:
        _install_locks[key] = asyncio.Lock()
    return _install_locks[key]


class _LockedInstallation:
    """Wraps ``ensure()`` in the install-directory lock."""

    def __init__(self, installation: DriverInstallation, lock: asyncio.Lock):
        self._installation = installation
        self._lock = lock

    async def ensure(self) -> Path:
        async with self._lock:
            return await self._installation.ensure()


class ScraperService:
    """Entry point used by the CLI and by embedding applications."""

    def __init__(
        self,
        settings: ScraperSettings | None = None,
        installation: DriverInstallation | None = None,
    ):
        self.settings = settings or get_settings()
        self.installation = installation or self._build_installation()
        self._lock = get_install_lock(self.installation.install_dir)

    def _build_installation(self) -> DriverInstallation:
        driver_settings = self.settings.driver
        install_dir = (
            Path(driver_settings.install_dir).expanduser()
            if driver_settings.install_dir
            else None
        )
        installation = DriverInstallation(install_dir=install_dir)
        installation.fetcher = DriverFetcher(
            installation.install_dir,
            catalog_url=driver_settings.catalog_url,
            timeout=driver_settings.download_timeout_sec,
        )
        return installation

    def session_options(self) -> SessionOptions:
        session = self.settings.session
        return SessionOptions(
            port_range=session.port_range,
            startup_delay_sec=session.startup_delay_sec,
            window_size=session.window_size,
            user_agent=session.user_agent,
            disable_sandbox=session.disable_sandbox,
            profile_dir=resolve_profile_dir(session),
        )

    async def ensure_driver(self) -> Path:
        """Return the path of a ready, patched driver."""
        async with self._lock:
            return await self.installation.ensure()

    async def redownload_driver(self) -> Path:
        """Wipe the install directory and provision the driver again."""
        async with self._lock:
            return await self.installation.redownload()

    async def get_version_info(self) -> tuple[str, str]:
        """Return ``(browser version, driver version)``."""
        async with self._lock:
            return await self.installation.version_info()

    async def scrape(
        self,
        keywords: list[str],
        platform: Platform | str,
        on_event: EventCallback | None = None,
        limit: int | None = None,
    ) -> list[ShopResult]:
        """Scrape ``keywords`` on ``platform``, streaming shops to ``on_event``.

        With ``platform="all"`` every enabled marketplace is scraped in turn,
        in one browser session, and ``done`` is emitted once at the end.

        Args:
        ----
            keywords: Search terms; the first one discovers the sellers
            platform: Target marketplace, or ``"all"``
            on_event: Sync or async callback receiving ``ScrapeEvent`` objects
            limit: Per-shop, per-keyword product cap overriding the config

        Returns:
        -------
            One ShopResult per discovered seller, in discovery order

        Raises:
        ------
            UnsupportedPlatform: If the platform is unknown or disabled
            ValueError: If ``limit`` is below 1
            ScraperError: If the driver or the browser session is unusable

        """
        if isinstance(platform, str) and platform.strip().lower() == ALL_PLATFORMS:
            adapters = AdapterFactory.create_enabled_adapters(self.settings)
        else:
            adapters = [AdapterFactory.create_adapter(platform, self.settings)]

        options = self.session_options()
        installation = _LockedInstallation(self.installation, self._lock)
        orchestrators = [
            ScrapeOrchestrator(
                adapter=adapter,
                installation=installation,
                session_factory=lambda path: AutomationSession(path, options),
                settings=self.settings,
                max_products_per_shop=limit,
            )
            for adapter in adapters
        ]

        if len(orchestrators) == 1:
            return await orchestrators[0].run(keywords, on_event)

        executable = await installation.ensure()
        shops: list[ShopResult] = []
        if keywords:
            async with AutomationSession(executable, options) as page:
                for orchestrator in orchestrators:
                    shops.extend(
                        await orchestrator.scrape_page(page, keywords, on_event)
                    )
        await emit_event(on_event, ScrapeEvent.done())
        return shops
