"""Shared helpers for marketplace scrapers."""

import logging
from collections.abc import Awaitable, Callable
from urllib.parse import quote

from tenacity import (
    AsyncRetrying,
    RetryCallState,
    retry_if_exception_type,
    retry_if_result,
    stop_after_delay,
    wait_fixed,
)

from ...driver.page import PageElement

logger = logging.getLogger(__name__)


async def poll_until(
    predicate: Callable[[], Awaitable[bool]],
    interval: float = 0.5,
    timeout: float = 6.0,
) -> bool:
    """Await ``predicate`` every ``interval`` seconds until it holds.

    The predicate is always checked at least once. An exception raised by
    the predicate counts as a failed check.

    Args:
    ----
        predicate: Async callable returning True once the condition is met
        interval: Seconds between checks
        timeout: Overall ceiling in seconds

    Returns:
    -------
        True if the condition was met, False on timeout

    """
    poller = AsyncRetrying(
        stop=stop_after_delay(timeout),
        wait=wait_fixed(interval),
        retry=(
            retry_if_result(lambda ok: not ok)
            | retry_if_exception_type(Exception)
        ),
        before_sleep=_log_failed_check,
        retry_error_callback=lambda _: False,
    )
    return bool(await poller(predicate))


def _log_failed_check(retry_state: RetryCallState) -> None:
    if retry_state.outcome is not None and retry_state.outcome.failed:
        e = retry_state.outcome.exception()
        logger.debug(f"Poll check raised {type(e).__name__}: {e}")


def normalize_link(link: str | None, base_url: str) -> str | None:
    """Make a card link absolute.

    Protocol-relative links get ``https:``; root-relative links are joined
    onto ``base_url``. Anything else is returned unchanged.
    """
    if not link:
        return None
    link = link.strip()
    if link.startswith("//"):
        return "https:" + link
    if link.startswith("/"):
        return base_url.rstrip("/") + link
    return link


def encode_query(keyword: str) -> str:
    """Percent-encode a keyword for use in a query string."""
    return quote(keyword.strip(), safe="")


async def first_text(element: PageElement, *selectors: str) -> str | None:
    """Return the first non-empty text under ``element``.

    Selectors are tried in the given order, and every match of a selector is
    checked before moving on to the next one.
    """
    for selector in selectors:
        for match in await element.query_all(selector):
            text = await match.text()
            if text:
                return text
    return None


async def first_attribute(
    element: PageElement, name: str, *selectors: str
) -> str | None:
    """Return attribute ``name`` of the first match that carries it."""
    for selector in selectors:
        for match in await element.query_all(selector):
            value = await match.attribute(name)
            if value:
                return value
    return None


async def card_link(card: PageElement) -> str | None:
    """Return the card's own ``href``, or that of its first nested link."""
    link = await card.attribute("href")
    if link:
        return link
    return await first_attribute(card, "href", "a[href]")
