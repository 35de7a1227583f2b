"""In-memory stand-ins for the Playwright page and element handle APIs used by placescout."""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, Iterable, Sequence

from placescout import selectors


class FakeElement:
    def __init__(self, text: str | None = None, attrs: dict[str, str] | None = None, *, clickable: bool = True) -> None:
        self.text = text
        self.attrs = dict(attrs or {})
        self.clickable = clickable
        self.clicks = 0

    async def text_content(self) -> str | None:
        return self.text

    async def get_attribute(self, name: str) -> str | None:
        return self.attrs.get(name)

    async def click(self) -> None:
        if not self.clickable:
            raise RuntimeError("element is not clickable")
        self.clicks += 1


class FakePage:
    """Scriptable page.

    ``elements`` maps selectors to handles for every URL unless ``sites`` has an entry
    for the current URL. ``link_batches`` are returned by successive link polls (the
    last batch repeats). ``trailing_texts`` are returned by successive end-marker checks.
    """

    def __init__(
        self,
        *,
        elements: dict[str, FakeElement] | None = None,
        sites: dict[str, dict[str, FakeElement]] | None = None,
        ready: Iterable[str] = (),
        goto_failures: int | dict[str, int] = 0,
        link_batches: Sequence[Sequence[str]] | None = None,
        trailing_texts: Sequence[Sequence[str]] | None = None,
        button_texts: Sequence[str] | None = None,
        broken_urls: Iterable[str] = (),
        links: dict[str, Sequence[str]] | None = None,
    ) -> None:
        self.elements = dict(elements or {})
        self.sites = dict(sites or {})
        self.ready = set(ready)
        self.goto_failures = goto_failures
        self.link_batches = [list(batch) for batch in (link_batches or [])]
        self.trailing_texts = [list(texts) for texts in (trailing_texts or [])]
        self.button_texts = list(button_texts or [])
        self.broken_urls = set(broken_urls)
        self.links = {url: list(hrefs) for url, hrefs in (links or {}).items()}
        self.headless: bool | None = None
        self.closed = False
        self.url = "about:blank"
        self.visited: list[str] = []
        self.link_polls = 0
        self.end_checks = 0
        self.scrolls = 0
        self.waited_for: list[tuple[str, int | None]] = []

    def _current_elements(self) -> dict[str, FakeElement]:
        return self.sites.get(self.url, self.elements)

    def _take_failure(self, url: str) -> bool:
        if isinstance(self.goto_failures, dict):
            remaining = self.goto_failures.get(url, 0)
            if remaining > 0:
                self.goto_failures[url] = remaining - 1
                return True
            return False
        if self.goto_failures > 0:
            self.goto_failures -= 1
            return True
        return False

    async def goto(self, url: str, *, wait_until: str | None = None, timeout: int | None = None) -> None:
        self.visited.append(url)
        if url in self.broken_urls or self._take_failure(url):
            raise RuntimeError("net::ERR_CONNECTION_RESET")
        self.url = url

    async def wait_for_selector(self, selector: str, *, timeout: int | None = None) -> FakeElement:
        self.waited_for.append((selector, timeout))
        element = self._current_elements().get(selector)
        if element is not None:
            return element
        if selector in self.ready:
            return FakeElement()
        raise TimeoutError(f"Timeout {timeout}ms exceeded waiting for {selector}")

    async def query_selector(self, selector: str) -> FakeElement | None:
        return self._current_elements().get(selector)

    async def eval_on_selector_all(self, selector: str, script: str) -> list[str]:
        if selector != selectors.PLACE_LINKS[0]:
            return []
        if self.url in self.links:
            self.link_polls += 1
            return list(self.links[self.url])
        if not self.link_batches:
            return []
        batch = self.link_batches[min(self.link_polls, len(self.link_batches) - 1)]
        self.link_polls += 1
        return list(batch)

    async def evaluate(self, script: str, arg: Any = None) -> Any:
        if "scrollTop" in script:
            self.scrolls += 1
            return arg["selectors"][0] if arg else None
        if "lastChild" in script:
            texts = self.trailing_texts[self.end_checks] if self.end_checks < len(self.trailing_texts) else []
            self.end_checks += 1
            return texts
        if "querySelectorAll('button')" in script:
            return list(self.button_texts)
        raise AssertionError(f"unexpected script: {script[:40]}")


def place_site(
    name: str,
    *,
    address: str | None = "1 Main St, Springfield, IL 62701",
    category: str | None = "Dentist",
    website: str | None = "https://example.com",
) -> dict[str, FakeElement]:
    """Elements of a loaded place detail page."""

    site = {"h1": FakeElement(name)}
    if address is not None:
        site['[data-item-id="address"]'] = FakeElement(address)
    if category is not None:
        site["button.DkEaL"] = FakeElement(category)
    if website is not None:
        site['a[data-item-id="authority"]'] = FakeElement(attrs={"href": website})
    return site


def place_href(slug: str) -> str:
    return f"https://www.google.com/maps/place/{slug}"


def page_factory(page: FakePage):
    """Build an orchestrator page factory that always yields *page*."""

    @asynccontextmanager
    async def factory(headless: bool):
        page.headless = headless
        try:
            yield page
        finally:
            page.closed = True

    return factory


async def no_sleep(seconds: float) -> None:
    return None


async def no_pause(*args: Any) -> None:
    return None
