"""Error kinds raised while provisioning the driver and running a scrape.

Provisioning errors are fatal to a scrape request. ``NavigationFailed`` is the
only error raised once a session is open, and the orchestrator always absorbs it.
"""


class ScraperError(Exception):
    """Base class for every error this package raises."""

    pass


class BrowserNotFound(ScraperError):
    """No installed browser could be located or queried for its version."""

    pass


class UnsupportedOs(ScraperError):
    """The running operating system or architecture has no driver build."""

    pass


class UnsupportedPlatform(ScraperError):
    """The requested marketplace has no extraction adapter or is disabled."""

    pass


class DriverFetchFailed(ScraperError):
    """Resolving or downloading a compatible driver failed."""

    pass


class DriverNetworkError(DriverFetchFailed):
    """The version catalog or the driver archive could not be downloaded."""

    pass


class CatalogFormatError(DriverFetchFailed):
    """The version catalog was not the expected JSON document."""

    pass


class PlatformNotInCatalog(DriverFetchFailed):
    """The selected catalog release has no download for this host."""

    pass


class ArchiveCorrupted(DriverFetchFailed):
    """The downloaded archive could not be opened."""

    pass


class ExecutableNotInArchive(DriverFetchFailed):
    """The archive did not contain the driver executable."""

    pass


class DriverVersionError(ScraperError):
    """The driver binary did not report a usable version."""

    pass


class DriverSpawnFailed(ScraperError):
    """The driver process could not be started."""

    pass


class SessionConnectFailed(ScraperError):
    """The remote-automation session could not be opened on the driver port."""

    pass


class NavigationFailed(ScraperError):
    """A page navigation did not complete."""

    pass
