"""Runs batch sessions: one browser per session, jobs and items strictly in order."""

from __future__ import annotations

import asyncio
from contextlib import asynccontextmanager
from typing import Any, AsyncContextManager, AsyncIterator, Awaitable, Callable

from playwright.async_api import async_playwright

import placescout.selectors as selectors
from placescout.config import ScrapeSettings
from placescout.discovery import ScrollDiscovery
from placescout.errors import BrowserLaunchError
from placescout.extractor import RecordExtractor, is_complete
from placescout.extractors.dom_utils import human_wait
from placescout.extractors.schemas import BatchRequest, DiscoveryJob
from placescout.logging_config import get_logger, log_progress
from placescout.navigation import NavigationController, dismiss_consent
from placescout.playwright_env import (
    apply_stealth,
    close_browser,
    feed_settle_bounds,
    item_delay_bounds,
    launch_browser,
    new_context,
    scroll_delay_bounds,
)
from placescout.session import BatchSession, SessionRegistry
from placescout.storage.export import save_partial_results
from placescout.storage.store import PlaceStore

LOGGER = get_logger(__name__)

PageFactory = Callable[[bool], AsyncContextManager[Any]]
PauseFn = Callable[[int, int], Awaitable[None]]
SleepFn = Callable[[float], Awaitable[None]]


@asynccontextmanager
async def playwright_page(headless: bool) -> AsyncIterator[Any]:
    """Yield a page in a fresh stealth-configured browser; the browser is closed on exit."""

    async with async_playwright() as playwright:
        apply_stealth(playwright)
        try:
            browser = await launch_browser(playwright, headless=headless)
        except Exception as exc:
            raise BrowserLaunchError(f"Could not launch browser: {exc}") from exc
        try:
            context = await new_context(browser)
            page = await context.new_page()
            yield page
        finally:
            await close_browser(browser)


class BatchOrchestrator:
    """Drives a ``BatchSession`` from ``running`` to a terminal state.

    Records accepted during the run are appended to the session as they arrive,
    checkpointed every ``partial_save_interval`` acceptances and merged into the
    store once the session completes or is cancelled.
    """

    def __init__(
        self,
        store: PlaceStore,
        settings: ScrapeSettings | None = None,
        *,
        page_factory: PageFactory = playwright_page,
        sleep: SleepFn = asyncio.sleep,
        pause: PauseFn = human_wait,
    ) -> None:
        self.store = store
        self.settings = settings or ScrapeSettings()
        self._page_factory = page_factory
        self._sleep = sleep
        self._pause = pause

    async def run(self, session: BatchSession, *, headless: bool = True) -> BatchSession:
        LOGGER.info("Starting session %s with %s keyword(s)", session.id, len(session.jobs))
        try:
            async with self._page_factory(headless) as page:
                await self._process_jobs(session, page)
        except asyncio.CancelledError:
            session.mark_cancelled()
            LOGGER.warning("Session %s task was cancelled", session.id)
            raise
        except Exception as exc:
            message = str(exc) or exc.__class__.__name__
            LOGGER.error("Session %s failed: %s", session.id, message)
            session.mark_error(message)
            return session

        added = await asyncio.to_thread(self.store.add_all, session.results())
        LOGGER.info(
            "Added %s new places to database (%s collected in session)",
            added,
            len(session.accumulated_records),
        )
        if session.cancel_requested:
            session.mark_cancelled()
            LOGGER.info("Session %s cancelled after %s places", session.id, session.progress)
        else:
            session.mark_completed()
            LOGGER.info("Session %s completed with %s places", session.id, session.progress)
        return session

    async def _process_jobs(self, session: BatchSession, page: Any) -> None:
        navigator = NavigationController(
            page,
            max_retries=self.settings.max_retries,
            navigation_timeout_ms=self.settings.navigation_timeout_ms,
            selector_timeout_ms=self.settings.selector_timeout_ms,
            sleep=self._sleep,
        )
        extractor = RecordExtractor(page, navigator)

        for index in range(len(session.jobs)):
            if session.cancel_requested:
                LOGGER.info("Cancellation requested; stopping before keyword %s", index + 1)
                return
            job = session.begin_job(index)
            LOGGER.info("Processing keyword %s/%s: %s", index + 1, len(session.jobs), job.search_term)

            identifiers = await self._discover(page, navigator, job)
            session.update_total(len(identifiers))

            for identifier in identifiers:
                if session.cancel_requested:
                    LOGGER.info("Cancellation requested; stopping keyword %r", job.search_term)
                    return
                await self._process_item(session, extractor, job, identifier)
                await self._pause(*item_delay_bounds())

    async def _discover(self, page: Any, navigator: NavigationController, job: DiscoveryJob) -> list[str]:
        LOGGER.info("Searching for: %s", job.query)
        if not await navigator.navigate(job.search_url):
            LOGGER.warning("Skipping %r; search page never loaded", job.query)
            return []

        await dismiss_consent(page)

        feed = await navigator.wait_for_any(selectors.RESULTS_FEED, self.settings.results_timeout_ms)
        if feed is None:
            LOGGER.warning("No results found for %r", job.query)
            return []
        LOGGER.debug("Results loaded (selector: %s)", feed)
        await self._pause(*feed_settle_bounds())

        discovery = ScrollDiscovery(
            page,
            max_scroll_attempts=self.settings.max_scroll_attempts,
            stable_count_threshold=self.settings.stable_count_threshold,
            pause=self._scroll_pause,
        )
        identifiers = await discovery.discover(job)
        LOGGER.info(
            "Found %s places for %r (stop: %s)",
            len(identifiers),
            job.query,
            discovery.stop_reason.value if discovery.stop_reason else None,
        )
        return identifiers

    async def _scroll_pause(self) -> None:
        await self._pause(*scroll_delay_bounds())

    async def _process_item(
        self,
        session: BatchSession,
        extractor: RecordExtractor,
        job: DiscoveryJob,
        identifier: str,
    ) -> None:
        try:
            record = await extractor.extract(identifier, keyword=job.search_term)
        except Exception as exc:
            LOGGER.error("Error scraping place %s: %s", identifier, exc)
            return

        if not is_complete(record):
            LOGGER.debug("Skipping place without website: %s", identifier)
            return

        session.record_accepted(record)
        log_progress(LOGGER, session.progress, session.total, record.name)

        if session.progress % self.settings.partial_save_interval == 0:
            save_partial_results(session.results(), session.id, self.settings.output_dir)


class SessionLauncher:
    """Creates sessions in a registry and runs each as its own asyncio task."""

    def __init__(self, registry: SessionRegistry, orchestrator: BatchOrchestrator) -> None:
        self.registry = registry
        self.orchestrator = orchestrator
        self._tasks: set[asyncio.Task[BatchSession]] = set()

    def start(self, request: BatchRequest) -> BatchSession:
        """Register a session for *request* and schedule it on the running loop."""

        session = self.registry.create(request.jobs())
        task = asyncio.create_task(self.orchestrator.run(session, headless=request.headless))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return session

