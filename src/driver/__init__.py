"""Chromedriver provisioning and browser session management.

Public API:
    - DriverInstallation: Ready-to-run patched driver, cached on disk
    - AutomationSession: Driver process plus remote-automation session
    - BrowserPage: Async page facade handed to scrapers
    - PatchEngine: Automation fingerprint removal
"""

from .errors import (
    ArchiveCorrupted,
    BrowserNotFound,
    CatalogFormatError,
    DriverFetchFailed,
    DriverNetworkError,
    DriverSpawnFailed,
    DriverVersionError,
    ExecutableNotInArchive,
    NavigationFailed,
    PlatformNotInCatalog,
    ScraperError,
    SessionConnectFailed,
    UnsupportedOs,
    UnsupportedPlatform,
)
from .fetcher import DriverFetcher
from .host import HostTarget, OsName, detect_host
from .installation import DriverInstallation
from .page import BrowserPage, PageElement
from .patcher import PatchEngine, PatchResult
from .session import AutomationSession, SessionOptions
from .version import BrowserVersion, VersionResolver, is_compatible

__all__ = [
    # Provisioning
    "DriverInstallation",
    "DriverFetcher",
    "PatchEngine",
    "PatchResult",
    "VersionResolver",
    "BrowserVersion",
    "is_compatible",
    "HostTarget",
    "OsName",
    "detect_host",
    # Sessions
    "AutomationSession",
    "SessionOptions",
    "BrowserPage",
    "PageElement",
    # Errors
    "ScraperError",
    "BrowserNotFound",
    "DriverFetchFailed",
    "DriverNetworkError",
    "CatalogFormatError",
    "PlatformNotInCatalog",
    "ArchiveCorrupted",
    "ExecutableNotInArchive",
    "DriverVersionError",
    "DriverSpawnFailed",
    "SessionConnectFailed",
    "NavigationFailed",
    "UnsupportedOs",
    "UnsupportedPlatform",
]
