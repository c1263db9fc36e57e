"""Host operating system detection and per-OS driver file naming."""

import platform
from dataclasses import dataclass
from enum import Enum

from .errors import UnsupportedOs


class OsName(Enum):
    """Operating systems a driver build exists for."""

    LINUX = "linux"
    MACOS = "macos"
    WINDOWS = "windows"


@dataclass(frozen=True)
class HostTarget:
    """Where the driver runs and what its files are called there."""

    os_name: OsName
    platform_tag: str  # catalog tag, e.g. "linux64", "mac-arm64", "win64"

    @property
    def executable_name(self) -> str:
        """Name of the executable inside the archive and in the install dir."""
        return "chromedriver.exe" if self.os_name is OsName.WINDOWS else "chromedriver"

    @property
    def patched_name(self) -> str:
        """Name of the patched copy, kept apart from the unpatched original."""
        if self.os_name is OsName.WINDOWS:
            return "chromedriver_PATCHED.exe"
        return "chromedriver_PATCHED"

    @property
    def is_posix(self) -> bool:
        return self.os_name is not OsName.WINDOWS


_ARM_MACHINES = {"arm64", "aarch64"}


def detect_host(system: str | None = None, machine: str | None = None) -> HostTarget:
    """Map ``platform.system()``/``platform.machine()`` to a driver target.

    Args:
    ----
        system: Override for ``platform.system()``
        machine: Override for ``platform.machine()``

    Returns:
    -------
        HostTarget for the running host

    Raises:
    ------
        UnsupportedOs: If no driver build exists for the host

    """
    system = (system or platform.system()).lower()
    machine = (machine or platform.machine()).lower()

    if system == "linux":
        if machine in _ARM_MACHINES:
            raise UnsupportedOs(f"No driver build for linux/{machine}")
        return HostTarget(OsName.LINUX, "linux64")
    if system == "darwin":
        tag = "mac-arm64" if machine in _ARM_MACHINES else "mac-x64"
        return HostTarget(OsName.MACOS, tag)
    if system == "windows":
        return HostTarget(OsName.WINDOWS, "win64")

    raise UnsupportedOs(f"Unsupported OS: {system}")
