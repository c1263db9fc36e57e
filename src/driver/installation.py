"""Provisioning of a ready-to-run, patched driver executable.

``ensure()`` walks Start -> check existing -> fetch -> patch -> Ready. When a
compatible patched driver is already on disk it costs one version check and
no network traffic. ``redownload()`` wipes the install directory first.

The install directory is shared state. Concurrent ``redownload()`` calls are
not excluded here; callers serialise them per directory.
"""

import logging
import shutil
from pathlib import Path

from ..utils.app_paths import get_driver_directory
from .errors import BrowserNotFound, DriverFetchFailed, DriverVersionError
from .fetcher import DriverFetcher
from .host import HostTarget, OsName, detect_host
from .patcher import PatchEngine
from .version import BrowserVersion, VersionResolver, is_compatible

logger = logging.getLogger(__name__)


class DriverInstallation:
    """On-disk driver cache keyed by browser version."""

    def __init__(
        self,
        install_dir: Path | None = None,
        target: HostTarget | None = None,
        resolver: VersionResolver | None = None,
        fetcher: DriverFetcher | None = None,
        patcher: PatchEngine | None = None,
    ):
        self.target = target or detect_host()
        self.install_dir = install_dir or get_driver_directory()
        self.resolver = resolver or VersionResolver(self.target.os_name)
        self.fetcher = fetcher or DriverFetcher(self.install_dir)
        self.patcher = patcher or PatchEngine()

        self.browser_version: BrowserVersion | None = None
        self.driver_version: str | None = None
        self.patched = False

    @property
    def os_name(self) -> OsName:
        return self.target.os_name

    @property
    def driver_path(self) -> Path:
        return self.install_dir / self.target.executable_name

    @property
    def executable_path(self) -> Path:
        """Path of the patched executable sessions are allowed to launch."""
        return self.install_dir / self.target.patched_name

    async def ensure(self) -> Path:
        """Return a patched driver compatible with the installed browser.

        Raises
        ------
            BrowserNotFound: If the browser version cannot be detected
            DriverFetchFailed: If a compatible driver cannot be downloaded

        """
        try:
            self.browser_version = self.resolver.resolve_browser_version()
        except BrowserNotFound as e:
            logger.error(f"❌ {e}")
            raise
        major = self.browser_version.major

        if self._existing_driver_is_compatible(major):
            logger.info("Compatible patched chromedriver already exists")
            self.patched = True
            return self.executable_path

        self.install_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"Downloading chromedriver for Chrome {self.browser_version.full}")
        try:
            raw_path = await self.fetcher.fetch(
                self.browser_version.match_prefix, self.target
            )
        except DriverFetchFailed as e:
            logger.error(f"❌ Driver download failed: {e}")
            raise

        self.patcher.patch_file(raw_path, self.executable_path)
        self.patched = True

        try:
            self.driver_version = self.resolver.resolve_driver_version(
                self.executable_path
            )
        except DriverVersionError as e:
            logger.warning(f"Could not read version of new driver: {e}")
            self.driver_version = None

        logger.info(f"✅ Driver ready at {self.executable_path}")
        return self.executable_path

    async def redownload(self) -> Path:
        """Delete the install directory and provision from scratch."""
        logger.info("Redownloading chromedriver...")
        if self.install_dir.exists():
            shutil.rmtree(self.install_dir)
        self.driver_version = None
        self.patched = False
        return await self.ensure()

    async def version_info(self) -> tuple[str, str]:
        """Ensure the driver, then report ``(browser version, driver version)``."""
        path = await self.ensure()
        if self.driver_version is None:
            self.driver_version = self.resolver.resolve_driver_version(path)
        return self.browser_version.full, self.driver_version

    def _existing_driver_is_compatible(self, browser_major: str) -> bool:
        """Version-check a previously patched driver, discarding it on mismatch."""
        patched = self.executable_path
        if not patched.exists():
            return False

        try:
            existing_version = self.resolver.resolve_driver_version(patched)
        except DriverVersionError as e:
            logger.info(f"Existing patched chromedriver is unusable: {e}")
            self._discard()
            return False

        if is_compatible(existing_version, browser_major):
            self.driver_version = existing_version
            return True

        logger.info(
            f"Existing patched chromedriver version {existing_version} is "
            f"incompatible with Chrome {browser_major}"
        )
        self._discard()
        return False

    def _discard(self) -> None:
        for path in (self.executable_path, self.driver_path):
            path.unlink(missing_ok=True)
        self.driver_version = None
        self.patched = False
