"""Driver download from the Chrome-for-Testing version catalog.

The catalog is a JSON document listing known-good versions, each with
per-platform download URLs. Archives are small, so they are read fully into
memory and opened as a zip file.
"""

import asyncio
import io
import json
import logging
import os
import zipfile
from pathlib import Path
from typing import Any

import aiohttp

from .errors import (
    ArchiveCorrupted,
    CatalogFormatError,
    DriverNetworkError,
    ExecutableNotInArchive,
    PlatformNotInCatalog,
)
from .host import HostTarget

logger = logging.getLogger(__name__)

DEFAULT_CATALOG_URL = (
    "https://googlechromelabs.github.io/chrome-for-testing/"
    "known-good-versions-with-downloads.json"
)
DRIVER_DOWNLOAD_KEY = "chromedriver"


def select_release(catalog: dict[str, Any], version_prefix: str) -> dict[str, Any]:
    """Pick the first release whose version starts with ``version_prefix``.

    Falls back to the first release in the catalog when nothing matches, since
    the catalog can lag behind the newest browser build.

    Raises
    ------
        CatalogFormatError: If the catalog has no ``versions`` list, or an
            entry in it is not an object

    """
    versions = catalog.get("versions") if isinstance(catalog, dict) else None
    if not isinstance(versions, list) or not versions:
        raise CatalogFormatError("versions not found in catalog")
    if not all(isinstance(entry, dict) for entry in versions):
        raise CatalogFormatError("catalog versions must be objects")

    for entry in versions:
        if str(entry.get("version", "")).startswith(version_prefix):
            return entry

    logger.warning(
        f"No catalog release matches {version_prefix}, "
        f"falling back to {versions[0].get('version')}"
    )
    return versions[0]


def select_download_url(release: dict[str, Any], platform_tag: str) -> str:
    """Return the driver archive URL for ``platform_tag``.

    Raises
    ------
        PlatformNotInCatalog: If the release has no driver for the platform
        CatalogFormatError: If the release downloads are malformed

    """
    if not isinstance(release, dict):
        raise CatalogFormatError("catalog release must be an object")

    downloads = release.get("downloads", {})
    if not isinstance(downloads, dict):
        raise CatalogFormatError(
            f"downloads of release {release.get('version')} must be an object"
        )

    drivers = downloads.get(DRIVER_DOWNLOAD_KEY) or []
    if not isinstance(drivers, list) or not all(isinstance(d, dict) for d in drivers):
        raise CatalogFormatError(
            f"{DRIVER_DOWNLOAD_KEY} downloads of release "
            f"{release.get('version')} must be a list of objects"
        )

    for download in drivers:
        if download.get("platform") == platform_tag and download.get("url"):
            return download["url"]
    raise PlatformNotInCatalog(
        f"No {platform_tag} driver in catalog release {release.get('version')}"
    )


def extract_executable(archive_bytes: bytes, executable_name: str) -> bytes:
    """Read the first archive entry whose name ends with ``executable_name``.

    Entries are usually nested one folder deep, e.g.
    ``chromedriver-linux64/chromedriver``.
    """
    try:
        archive = zipfile.ZipFile(io.BytesIO(archive_bytes))
    except zipfile.BadZipFile as e:
        raise ArchiveCorrupted(f"Failed to open driver archive: {e}") from e

    with archive:
        for name in archive.namelist():
            if name.endswith("/"):
                continue
            if name == executable_name or name.endswith("/" + executable_name):
                logger.info(f"Found driver in archive at: {name}")
                return archive.read(name)

    raise ExecutableNotInArchive(f"{executable_name} not found in driver archive")


class DriverFetcher:
    """Downloads and unpacks a driver matching a browser version."""

    def __init__(
        self,
        install_dir: Path,
        catalog_url: str = DEFAULT_CATALOG_URL,
        timeout: float = 120,
    ):
        self.install_dir = install_dir
        self.catalog_url = catalog_url
        self.timeout = timeout

    async def fetch(self, version_prefix: str, target: HostTarget) -> Path:
        """Resolve, download and write the driver executable.

        Args:
        ----
            version_prefix: Browser ``major`` or ``major.minor`` prefix
            target: Host the driver will run on

        Returns:
        -------
            Path of the unpatched executable in the install directory

        Raises:
        ------
            DriverFetchFailed: Any catalog, network or archive failure

        """
        client_timeout = aiohttp.ClientTimeout(total=self.timeout)
        async with aiohttp.ClientSession(timeout=client_timeout) as session:
            catalog = await self._get_catalog(session)
            release = select_release(catalog, version_prefix)
            url = select_download_url(release, target.platform_tag)
            logger.info(f"Downloading driver {release.get('version')} from {url}")
            archive_bytes = await self._download(session, url)

        executable = extract_executable(archive_bytes, target.executable_name)
        return self._write_executable(executable, target)

    async def _get_catalog(self, session: aiohttp.ClientSession) -> dict[str, Any]:
        try:
            async with session.get(self.catalog_url) as response:
                response.raise_for_status()
                body = await response.text()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise DriverNetworkError(f"Failed to fetch version catalog: {e}") from e

        try:
            return json.loads(body)
        except json.JSONDecodeError as e:
            raise CatalogFormatError(f"Version catalog is not valid JSON: {e}") from e

    async def _download(self, session: aiohttp.ClientSession, url: str) -> bytes:
        try:
            async with session.get(url) as response:
                response.raise_for_status()
                return await response.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise DriverNetworkError(f"Failed to download driver: {e}") from e

    def _write_executable(self, data: bytes, target: HostTarget) -> Path:
        self.install_dir.mkdir(parents=True, exist_ok=True)
        driver_path = self.install_dir / target.executable_name
        driver_path.write_bytes(data)

        # Zip entries do not reliably carry the executable bit
        if target.is_posix and os.name != "nt":
            driver_path.chmod(0o755)

        logger.info(f"Driver downloaded to: {driver_path}")
        return driver_path
