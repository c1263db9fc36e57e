"""Driver process and remote-automation session lifecycle.

A session spawns the patched driver on a random local port, waits for it to
settle, then connects with a fixed capability profile. The driver process
and the browser it launches are killed on every exit path.
"""

import asyncio
import logging
import random
import subprocess
from dataclasses import dataclass, field
from pathlib import Path

import psutil
from selenium import webdriver
from selenium.common.exceptions import WebDriverException

from .errors import DriverSpawnFailed, SessionConnectFailed
from .page import BrowserPage

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


@dataclass
class SessionOptions:
    """Capability profile and startup parameters for one session."""

    port_range: tuple[int, int] = (5000, 9000)
    startup_delay_sec: float = 2.0
    window_size: tuple[int, int] = (1920, 1080)
    user_agent: str = DEFAULT_USER_AGENT
    disable_sandbox: bool = True
    profile_dir: str | None = None
    extra_arguments: list[str] = field(default_factory=list)


def build_chrome_options(options: SessionOptions) -> webdriver.ChromeOptions:
    """Translate a session profile into selenium Chrome options."""
    chrome_options = webdriver.ChromeOptions()

    if options.profile_dir:
        chrome_options.add_argument(f"--user-data-dir={options.profile_dir}")
    if options.disable_sandbox:
        chrome_options.add_argument("--no-sandbox")
    chrome_options.add_argument("--disable-dev-shm-usage")
    chrome_options.add_argument("--disable-blink-features=AutomationControlled")
    width, height = options.window_size
    chrome_options.add_argument(f"--window-size={width},{height}")
    chrome_options.add_argument(f"--user-agent={options.user_agent}")
    chrome_options.add_argument("--disable-infobars")
    for argument in options.extra_arguments:
        chrome_options.add_argument(argument)

    chrome_options.add_experimental_option("excludeSwitches", ["enable-automation"])
    chrome_options.add_experimental_option("useAutomationExtension", False)
    return chrome_options


def kill_process_tree(pid: int) -> None:
    """Kill a process and all of its descendants. Failures are only logged."""
    try:
        parent = psutil.Process(pid)
        children = parent.children(recursive=True)
    except psutil.NoSuchProcess:
        return
    except psutil.Error as e:
        logger.warning(f"Could not inspect driver process {pid}: {e}")
        return

    for proc in [*children, parent]:
        try:
            proc.kill()
        except psutil.NoSuchProcess:
            continue
        except psutil.Error as e:
            logger.warning(f"Failed to kill process {proc.pid}: {e}")

    _, alive = psutil.wait_procs([*children, parent], timeout=5)
    if alive:
        logger.warning(f"Processes still alive after kill: {[p.pid for p in alive]}")


class AutomationSession:
    """Owns one driver process and the browser session connected to it.

    Usage:
        async with AutomationSession(executable_path) as page:
            await page.goto("https://www.tokopedia.com")
    """

    def __init__(self, executable_path: Path, options: SessionOptions | None = None):
        self.executable_path = executable_path
        self.options = options or SessionOptions()
        self.port: int | None = None
        self.process: subprocess.Popen | None = None
        self.driver: webdriver.Remote | None = None

    async def open(self) -> BrowserPage:
        """Spawn the driver and connect to it.

        Raises
        ------
            DriverSpawnFailed: If the driver process cannot be started
            SessionConnectFailed: If the session handshake fails

        """
        low, high = self.options.port_range
        self.port = random.randrange(low, high)  # noqa: S311

        try:
            self.process = subprocess.Popen(
                [str(self.executable_path), f"--port={self.port}"],
                cwd=str(self.executable_path.parent),
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
            )
        except OSError as e:
            raise DriverSpawnFailed(f"failed to spawn chromedriver: {e}") from e

        logger.info(f"Started chromedriver pid {self.process.pid} on port {self.port}")

        try:
            await asyncio.sleep(self.options.startup_delay_sec)
            chrome_options = build_chrome_options(self.options)
            self.driver = await asyncio.to_thread(
                webdriver.Remote,
                command_executor=f"http://127.0.0.1:{self.port}",
                options=chrome_options,
            )
        except WebDriverException as e:
            await self.close()
            raise SessionConnectFailed(
                f"failed to connect to chromedriver: {e.msg}"
            ) from e
        except BaseException:
            await self.close()
            raise

        return BrowserPage(self.driver)

    async def close(self) -> None:
        """Quit the browser session and kill the driver process tree."""
        driver, self.driver = self.driver, None
        process, self.process = self.process, None
        try:
            if driver is not None:
                try:
                    await asyncio.to_thread(driver.quit)
                except Exception as e:
                    logger.warning(f"Browser session did not quit cleanly: {e}")
        finally:
            if process is not None:
                await asyncio.to_thread(kill_process_tree, process.pid)

    async def __aenter__(self) -> BrowserPage:
        return await self.open()

    async def __aexit__(self, _exc_type, _exc_val, _exc_tb) -> None:
        await self.close()
