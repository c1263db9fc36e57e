"""Installed browser and provisioned driver version detection.

Browser version strategies, first success wins:
  1. OS-native configuration store (Windows registry)
  2. Browser executable found on disk, invoked with ``--version``
  3. Well-known command names on PATH, invoked with ``--version``
"""

import logging
import os
import re
import shutil
import subprocess
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

from .errors import BrowserNotFound, DriverVersionError
from .host import OsName

logger = logging.getLogger(__name__)

_VERSION_PATTERN = re.compile(r"\d+(?:\.\d+)+")

_REGISTRY_KEY = r"HKEY_CURRENT_USER\Software\Google\Chrome\BLBeacon"

_BROWSER_PATHS: dict[OsName, list[str]] = {
    OsName.WINDOWS: [
        r"C:\Program Files\Google\Chrome\Application\chrome.exe",
        r"C:\Program Files (x86)\Google\Chrome\Application\chrome.exe",
        r"C:\Users\{user}\AppData\Local\Google\Chrome\Application\chrome.exe",
    ],
    OsName.MACOS: [
        "/Applications/Google Chrome.app/Contents/MacOS/Google Chrome",
    ],
    OsName.LINUX: [
        "/usr/bin/google-chrome",
        "/usr/bin/google-chrome-stable",
        "/usr/bin/chromium",
        "/usr/bin/chromium-browser",
    ],
}

_BROWSER_COMMANDS = [
    "google-chrome",
    "google-chrome-stable",
    "chromium",
    "chromium-browser",
    "chrome",
    "chrome.exe",
]

_COMMAND_TIMEOUT = 15  # seconds


@dataclass(frozen=True)
class BrowserVersion:
    """A detected browser version.

    ``full`` is kept for display and exact comparison; ``match_prefix`` is the
    ``major.minor`` prefix used to look up a driver release.
    """

    full: str

    @property
    def major(self) -> str:
        return self.full.split(".")[0]

    @property
    def match_prefix(self) -> str:
        return ".".join(self.full.split(".")[:2])


def parse_version_token(text: str) -> str | None:
    """Return the last dotted version number found in ``text``."""
    matches = _VERSION_PATTERN.findall(text)
    return matches[-1] if matches else None


def parse_driver_version(output: str) -> str:
    """Parse ``chromedriver --version`` output.

    The version is the second whitespace-delimited token of the first line,
    e.g. ``ChromeDriver 116.0.5845.96 (1a3918...)`` gives ``116.0.5845.96``.

    Raises
    ------
        DriverVersionError: If the output has no second token

    """
    lines = output.strip().splitlines()
    tokens = lines[0].split() if lines else []
    if len(tokens) < 2 or not _VERSION_PATTERN.fullmatch(tokens[1]):
        raise DriverVersionError(f"Could not parse driver version from: {output!r}")
    return tokens[1]


def is_compatible(driver_version: str, browser_major: str) -> bool:
    """Check that a driver version belongs to the browser's major release."""
    return driver_version.split(".")[0] == browser_major


Runner = Callable[..., subprocess.CompletedProcess]


class VersionResolver:
    """Detects the installed browser version and a driver binary's version."""

    def __init__(self, os_name: OsName, runner: Runner = subprocess.run):
        self.os_name = os_name
        self._run = runner

    def resolve_browser_version(self) -> BrowserVersion:
        """Detect the installed browser version.

        Raises
        ------
            BrowserNotFound: If every strategy fails

        """
        strategies = [
            ("registry", self._from_registry),
            ("executable", self._from_executable),
            ("command", self._from_commands),
        ]
        for name, strategy in strategies:
            version = strategy()
            if version:
                logger.info(f"Detected browser version {version} via {name}")
                return BrowserVersion(version)
            logger.debug(f"Browser version strategy '{name}' found nothing")

        raise BrowserNotFound("Could not determine the installed Chrome version")

    def resolve_driver_version(self, executable_path: Path) -> str:
        """Run the driver with ``--version`` and parse its version.

        Raises
        ------
            DriverVersionError: On exec failure, nonzero exit or unparsable output

        """
        try:
            result = self._run(
                [str(executable_path), "--version"],
                capture_output=True,
                text=True,
                timeout=_COMMAND_TIMEOUT,
            )
        except (OSError, subprocess.SubprocessError) as e:
            raise DriverVersionError(f"Failed to execute driver: {e}") from e

        if result.returncode != 0:
            raise DriverVersionError(
                f"Driver exited with code {result.returncode}: {result.stderr}"
            )
        return parse_driver_version(result.stdout)

    def find_browser_executable(self) -> Path | None:
        """Probe well-known install locations, then PATH."""
        for template in _BROWSER_PATHS.get(self.os_name, []):
            if "{user}" in template:
                user = os.environ.get("USERNAME")
                if not user:
                    continue
                template = template.replace("{user}", user)
            path = Path(template)
            if path.exists():
                return path

        lookup = "chrome.exe" if self.os_name is OsName.WINDOWS else "google-chrome"
        found = shutil.which(lookup)
        return Path(found) if found else None

    def _from_registry(self) -> str | None:
        if self.os_name is not OsName.WINDOWS:
            return None
        output = self._capture(["reg", "query", _REGISTRY_KEY, "/v", "version"])
        if not output:
            return None
        for line in output.splitlines():
            if "REG_SZ" in line:
                return parse_version_token(line.split("REG_SZ", 1)[1])
        return None

    def _from_executable(self) -> str | None:
        executable = self.find_browser_executable()
        if executable is None:
            return None
        logger.info(f"Found Chrome at: {executable}")
        output = self._capture([str(executable), "--version"])
        return parse_version_token(output) if output else None

    def _from_commands(self) -> str | None:
        for command in _BROWSER_COMMANDS:
            output = self._capture([command, "--version"])
            if output:
                version = parse_version_token(output)
                if version:
                    return version
        return None

    def _capture(self, args: list[str]) -> str | None:
        """Run a command and return stdout, or None if it could not run."""
        try:
            result = self._run(
                args, capture_output=True, text=True, timeout=_COMMAND_TIMEOUT
            )
        except (OSError, subprocess.SubprocessError) as e:
            logger.debug(f"Command {args[0]} unavailable: {e}")
            return None
        if result.returncode != 0:
            return None
        return result.stdout
