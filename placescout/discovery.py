"""Scroll-driven link discovery for the lazily loaded results feed."""

from __future__ import annotations

from enum import Enum
from typing import Any, AsyncIterator, Awaitable, Callable

import placescout.selectors as selectors
from placescout.extractors.dom_utils import human_wait, query_first, scroll_amount
from placescout.extractors.schemas import DiscoveryJob
from placescout.logging_config import get_logger
from placescout.playwright_env import scroll_delay_bounds

LOGGER = get_logger(__name__)

MAX_SCROLL_ATTEMPTS = 100
STABLE_COUNT_THRESHOLD = 10

_HREFS_JS = "(elements) => elements.map((el) => el.getAttribute('href')).filter(Boolean)"

_SCROLL_JS = """
({ selectors, mainSelector, amount }) => {
  for (const selector of selectors) {
    const feed = document.querySelector(selector);
    if (feed && feed.scrollHeight > feed.clientHeight) {
      feed.scrollTop += amount;
      return selector;
    }
  }
  const mainArea = document.querySelector(mainSelector);
  if (mainArea) {
    for (const div of mainArea.querySelectorAll('div')) {
      if (div.scrollHeight > div.clientHeight) {
        div.scrollTop += amount;
        return mainSelector;
      }
    }
  }
  return null;
}
"""

_TRAILING_TEXT_JS = """
(selectors) => {
  const texts = [];
  for (const selector of selectors) {
    const feed = document.querySelector(selector);
    if (!feed) continue;
    const lastChild = feed.querySelector(':scope > div:last-child');
    if (lastChild) texts.push(lastChild.textContent || '');
  }
  return texts;
}
"""


class StopReason(str, Enum):
    """Why a discovery run ended. None of these are errors."""

    LIMIT_REACHED = "limit_reached"
    STABLE = "stable"
    END_MARKER = "end_marker"
    CEILING = "ceiling"


def is_end_of_list(text: str | None) -> bool:
    lowered = (text or "").lower()
    return any(phrase in lowered for phrase in selectors.END_OF_LIST_PHRASES)


def is_place_link(href: str | None) -> bool:
    return bool(href) and selectors.PLACE_PATH_FRAGMENT in href


async def _default_pause() -> None:
    min_ms, max_ms = scroll_delay_bounds()
    await human_wait(min_ms, max_ms)


class ScrollDiscovery:
    """Collects listing identifiers from the feed, scrolling until a stop condition fires.

    Stop conditions, checked every iteration: the job's result limit is reached, the
    identifier set has not grown for ``stable_count_threshold`` consecutive polls, an
    end-of-list marker is visible, or ``max_scroll_attempts`` iterations have run.
    """

    def __init__(
        self,
        page: Any,
        *,
        max_scroll_attempts: int = MAX_SCROLL_ATTEMPTS,
        stable_count_threshold: int = STABLE_COUNT_THRESHOLD,
        pause: Callable[[], Awaitable[None]] = _default_pause,
    ) -> None:
        self.page = page
        self.max_scroll_attempts = max(1, max_scroll_attempts)
        self.stable_count_threshold = max(1, stable_count_threshold)
        self._pause = pause
        self.stop_reason: StopReason | None = None
        self.iterations = 0

    async def discover(self, job: DiscoveryJob) -> list[str]:
        """Return identifiers in first-discovered order, truncated to the job limit."""

        return [identifier async for identifier in self.iter_identifiers(job)]

    async def iter_identifiers(self, job: DiscoveryJob) -> AsyncIterator[str]:
        """Yield each identifier once, as soon as it is first seen."""

        limit = job.result_limit
        seen: dict[str, None] = {}
        stable_count = 0
        self.stop_reason = None
        self.iterations = 0

        LOGGER.debug(
            "Starting link collection for %r - max results: %s",
            job.search_term,
            limit if limit is not None else "unlimited",
        )

        if limit is not None and limit <= 0:
            self.stop_reason = StopReason.LIMIT_REACHED
            return

        await self._log_feed_container()

        while True:
            if self.iterations >= self.max_scroll_attempts:
                self.stop_reason = StopReason.CEILING
                LOGGER.info("Scroll ceiling of %s iterations reached", self.max_scroll_attempts)
                break
            self.iterations += 1

            before = len(seen)
            for link in await self._collect_links():
                if link in seen:
                    continue
                if limit is not None and len(seen) >= limit:
                    break
                seen[link] = None
                yield link

            if limit is not None and len(seen) >= limit:
                self.stop_reason = StopReason.LIMIT_REACHED
                break

            if len(seen) == before:
                stable_count += 1
                if stable_count >= self.stable_count_threshold:
                    self.stop_reason = StopReason.STABLE
                    LOGGER.info(
                        "No new results after %s scroll attempts - assuming end of list",
                        stable_count,
                    )
                    break
            else:
                stable_count = 0
                LOGGER.debug("Found %s links so far for keyword %r", len(seen), job.search_term)

            if await self._reached_end_marker():
                self.stop_reason = StopReason.END_MARKER
                LOGGER.info("Reached end of results list")
                break

            await self._scroll()
            await self._pause()

        LOGGER.debug(
            "Finished scrolling. Collected %s total links (stop=%s, iterations=%s)",
            len(seen),
            self.stop_reason.value if self.stop_reason else None,
            self.iterations,
        )

    async def _collect_links(self) -> list[str]:
        for selector in selectors.PLACE_LINKS:
            try:
                hrefs = await self.page.eval_on_selector_all(selector, _HREFS_JS)
            except Exception:
                continue
            links = [href for href in hrefs or [] if isinstance(href, str) and is_place_link(href)]
            if links:
                LOGGER.debug("Found %s links with selector: %s", len(links), selector)
                return links
        return []

    async def _reached_end_marker(self) -> bool:
        try:
            texts = await self.page.evaluate(_TRAILING_TEXT_JS, list(selectors.FEED_CONTAINER))
        except Exception:
            return False
        return any(is_end_of_list(text) for text in texts or [])

    async def _scroll(self) -> None:
        payload = {
            "selectors": list(selectors.FEED_CONTAINER),
            "mainSelector": selectors.MAIN_REGION,
            "amount": scroll_amount(),
        }
        try:
            await self.page.evaluate(_SCROLL_JS, payload)
        except Exception as exc:
            LOGGER.debug("Feed scroll failed: %s", exc)

    async def _log_feed_container(self) -> None:
        for selector in selectors.FEED_CONTAINER:
            if await query_first(self.page, selector) is not None:
                LOGGER.info("Using feed selector: %s", selector)
                return
