"""Page navigation with bounded retries, exponential backoff and readiness probing."""

from __future__ import annotations

import asyncio
import random
from typing import Any, Awaitable, Callable, Sequence

from tenacity import AsyncRetrying, RetryCallState, retry_if_exception_type, stop_after_attempt

import placescout.selectors as selectors
from placescout.errors import NavigationError
from placescout.extractors.dom_utils import human_wait, query_first
from placescout.logging_config import get_logger
from placescout.playwright_env import consent_delay_bounds

LOGGER = get_logger(__name__)

MAX_RETRIES = 3
NAVIGATION_TIMEOUT_MS = 60000
SELECTOR_TIMEOUT_MS = 15000

SleepFn = Callable[[float], Awaitable[None]]


def backoff_window(attempt: int) -> tuple[float, float]:
    """Seconds to wait after failed attempt *attempt* (1-based): ``[2^k, 2*2^k]``."""

    low = float(2 ** attempt)
    return low, low * 2


def _backoff_wait(retry_state: RetryCallState) -> float:
    low, high = backoff_window(retry_state.attempt_number)
    return random.uniform(low, high)


class NavigationController:
    """Wraps ``page.goto`` with retries and a degrade-gracefully readiness wait."""

    def __init__(
        self,
        page: Any,
        *,
        max_retries: int = MAX_RETRIES,
        navigation_timeout_ms: int = NAVIGATION_TIMEOUT_MS,
        selector_timeout_ms: int = SELECTOR_TIMEOUT_MS,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self.page = page
        self.max_retries = max(1, max_retries)
        self.navigation_timeout_ms = navigation_timeout_ms
        self.selector_timeout_ms = selector_timeout_ms
        self._sleep = sleep
        self.last_ready_selector: str | None = None

    async def navigate(
        self,
        url: str,
        *,
        ready: Sequence[str] | None = None,
        detail_page: bool = False,
    ) -> bool:
        """Load *url*; return False only when every attempt failed.

        After a successful load the ``ready`` selectors, then the default list for the
        page kind, are waited on in order. If none appear the navigation still counts
        as successful.
        """

        self.last_ready_selector = None
        retrying = AsyncRetrying(
            stop=stop_after_attempt(self.max_retries),
            wait=_backoff_wait,
            retry=retry_if_exception_type(NavigationError),
            sleep=self._sleep,
            before_sleep=self._log_retry,
            reraise=True,
        )
        try:
            async for attempt in retrying:
                with attempt:
                    await self._goto(url, attempt.retry_state.attempt_number)
        except NavigationError as exc:
            LOGGER.error("All navigation attempts failed for URL: %s (%s)", url, exc.__cause__)
            LOGGER.error("Check network connectivity and proxy settings if configured.")
            return False

        defaults = selectors.PLACE_DETAIL_READY if detail_page else selectors.SEARCH_READY
        candidates = list(ready or ()) + list(defaults)
        for selector in candidates:
            if await self._wait_for(selector):
                self.last_ready_selector = selector
                LOGGER.debug("Found ready selector: %s", selector)
                return True

        LOGGER.warning("Navigation succeeded but expected selectors not found for: %s", url)
        return True

    async def _goto(self, url: str, attempt_number: int) -> None:
        LOGGER.debug("Navigation attempt %s/%s to: %s", attempt_number, self.max_retries, url)
        try:
            await self.page.goto(
                url,
                wait_until="domcontentloaded",
                timeout=self.navigation_timeout_ms,
            )
        except Exception as exc:
            raise NavigationError(url=url) from exc

    async def _wait_for(self, selector: str, timeout_ms: int | None = None) -> bool:
        try:
            await self.page.wait_for_selector(
                selector,
                timeout=self.selector_timeout_ms if timeout_ms is None else timeout_ms,
            )
            return True
        except Exception:
            return False

    async def wait_for_any(self, candidates: Sequence[str], timeout_ms: int) -> str | None:
        """Return the first of *candidates* to appear within *timeout_ms* each."""

        for selector in candidates:
            if await self._wait_for(selector, timeout_ms):
                return selector
        return None

    def _log_retry(self, retry_state: RetryCallState) -> None:
        exc = retry_state.outcome.exception() if retry_state.outcome else None
        url = getattr(exc, "url", None)
        LOGGER.warning(
            "Navigation attempt %s/%s failed for URL: %s",
            retry_state.attempt_number,
            self.max_retries,
            url,
        )
        if exc is not None and exc.__cause__ is not None:
            LOGGER.warning("Error: %s", exc.__cause__)


async def dismiss_consent(page: Any) -> bool:
    """Click the first consent button present; return True when one was clicked."""

    for selector in selectors.CONSENT_BUTTONS:
        button = await query_first(page, selector)
        if button is None:
            continue
        try:
            await button.click()
        except Exception:
            LOGGER.debug("Consent button %s present but not clickable", selector)
            continue
        min_ms, max_ms = consent_delay_bounds()
        await human_wait(min_ms, max_ms)
        LOGGER.info("Handled consent dialog")
        return True
    return False
