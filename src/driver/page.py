"""Async facade over a selenium remote-automation session.

Selenium calls block, so each one runs through ``asyncio.to_thread``. Element
lookups and reads never raise: a missing element, a stale reference or a
dropped driver connection gives ``None`` or an empty list. Only ``goto``
raises, with ``NavigationFailed``.
"""

import asyncio
import logging

from selenium.common.exceptions import WebDriverException
from selenium.webdriver.common.by import By
from selenium.webdriver.common.keys import Keys
from selenium.webdriver.remote.webdriver import WebDriver
from selenium.webdriver.remote.webelement import WebElement
from urllib3.exceptions import HTTPError

from .errors import NavigationFailed

logger = logging.getLogger(__name__)

# Browser-side errors plus the driver's HTTP transport failing or stalling
DRIVER_ERRORS = (WebDriverException, HTTPError, OSError)


def _describe(e: Exception) -> str:
    if isinstance(e, WebDriverException):
        return e.msg or type(e).__name__
    return f"{type(e).__name__}: {e}"


class PageElement:
    """A located element whose reads return optional values."""

    def __init__(self, element: WebElement):
        self._element = element

    async def text(self) -> str | None:
        try:
            value = await asyncio.to_thread(lambda: self._element.text)
        except DRIVER_ERRORS as e:
            logger.debug(f"Could not read element text: {_describe(e)}")
            return None
        value = (value or "").strip()
        return value or None

    async def attribute(self, name: str) -> str | None:
        try:
            value = await asyncio.to_thread(self._element.get_attribute, name)
        except DRIVER_ERRORS as e:
            logger.debug(f"Could not read attribute {name}: {_describe(e)}")
            return None
        return value or None

    async def query_all(self, selector: str) -> list["PageElement"]:
        try:
            elements = await asyncio.to_thread(
                self._element.find_elements, By.CSS_SELECTOR, selector
            )
        except DRIVER_ERRORS as e:
            logger.debug(f"Lookup of {selector} failed: {_describe(e)}")
            return []
        return [PageElement(element) for element in elements]


class BrowserPage:
    """The single page context a scrape runs in."""

    def __init__(self, driver: WebDriver):
        self.driver = driver

    async def goto(self, url: str) -> None:
        """Navigate to ``url``.

        Raises
        ------
            NavigationFailed: If the browser reports a navigation error or
                the driver connection fails

        """
        logger.debug(f"Navigating to {url}")
        try:
            await asyncio.to_thread(self.driver.get, url)
        except DRIVER_ERRORS as e:
            raise NavigationFailed(f"Failed to open {url}: {_describe(e)}") from e

    async def query(self, selector: str) -> PageElement | None:
        found = await self.query_all(selector)
        return found[0] if found else None

    async def query_all(self, selector: str) -> list[PageElement]:
        try:
            elements = await asyncio.to_thread(
                self.driver.find_elements, By.CSS_SELECTOR, selector
            )
        except DRIVER_ERRORS as e:
            logger.debug(f"Lookup of {selector} failed: {_describe(e)}")
            return []
        return [PageElement(element) for element in elements]

    async def exists(self, selector: str) -> bool:
        return await self.query(selector) is not None

    async def text_of(self, selector: str) -> str | None:
        element = await self.query(selector)
        return await element.text() if element else None

    async def submit_search(self, selector: str, text: str) -> bool:
        """Type ``text`` into the first visible match of ``selector`` and submit.

        Returns
        -------
            False if no visible search box was found or typing failed

        """
        return await asyncio.to_thread(self._submit_search_blocking, selector, text)

    def _submit_search_blocking(self, selector: str, text: str) -> bool:
        try:
            boxes = self.driver.find_elements(By.CSS_SELECTOR, selector)
            box = next((b for b in boxes if b.is_displayed()), None)
            if box is None:
                return False
            box.click()
            box.clear()
            box.send_keys(text)
            box.send_keys(Keys.ENTER)
            return True
        except DRIVER_ERRORS as e:
            logger.debug(f"Search box interaction on {selector} failed: {_describe(e)}")
            return False
