import asyncio
import logging

from fakes import FakeElement, FakePage, no_sleep, place_href, place_site
from placescout import extractor as extractor_module
from placescout.extractor import RecordExtractor, is_complete
from placescout.logging_config import LOG_FORMAT
from placescout.navigation import NavigationController
from placescout.normalizers import NOT_AVAILABLE


def _extract(page: FakePage, identifier: str, keyword: str | None = "dentist"):
    navigator = NavigationController(page, max_retries=2, sleep=no_sleep)
    return asyncio.run(RecordExtractor(page, navigator).extract(identifier, keyword=keyword))


def test_extracts_all_fields() -> None:
    url = place_href("smile")
    page = FakePage(sites={url: place_site("Smile Dental", address="123 Main St, New York, NY 10001")})

    record = _extract(page, url)

    assert record.name == "Smile Dental"
    assert record.locality == "New York"
    assert record.category == "Dentist"
    assert record.website == "https://example.com"
    assert record.source_keyword == "dentist"
    assert is_complete(record)


def test_relative_identifier_is_resolved() -> None:
    url = place_href("smile")
    page = FakePage(sites={url: place_site("Smile Dental")})

    record = _extract(page, "/maps/place/smile")

    assert page.visited == [url]
    assert record.name == "Smile Dental"


def test_redirect_website_is_unwrapped_and_platform_links_rejected() -> None:
    url = place_href("cafe")
    site = place_site("Cafe", website="https://www.google.com/maps/dir/cafe")
    site['a[href*="url?q="]'] = FakeElement(
        attrs={"href": "/url?q=https%3A%2F%2Fcafe.example%2F&opi=1"}
    )
    page = FakePage(sites={url: site})

    record = _extract(page, url)

    assert record.website == "https://cafe.example/"


def test_missing_fields_degrade_to_sentinel() -> None:
    url = place_href("bare")
    page = FakePage(sites={url: place_site("Bare", address=None, category=None, website=None)})

    record = _extract(page, url)

    assert record.name == "Bare"
    assert record.locality == NOT_AVAILABLE
    assert record.category == NOT_AVAILABLE
    assert record.website == NOT_AVAILABLE
    assert not is_complete(record)


def test_category_falls_back_to_button_scan() -> None:
    url = place_href("bakery")
    page = FakePage(
        sites={url: place_site("Bakery", category=None)},
        button_texts=["Directions", "4.8 stars", "Bakery"],
    )

    record = _extract(page, url)

    assert record.category == "Bakery"


def test_navigation_failure_returns_none() -> None:
    url = place_href("gone")
    page = FakePage(broken_urls=[url])

    assert _extract(page, url) is None
    assert page.visited == [url, url]
    assert not is_complete(None)


def test_navigation_failure_log_names_the_url(caplog) -> None:
    url = place_href("gone")
    page = FakePage(broken_urls=[url])
    extractor_module.LOGGER.addHandler(caplog.handler)
    try:
        _extract(page, url)
    finally:
        extractor_module.LOGGER.removeHandler(caplog.handler)

    formatter = logging.Formatter(LOG_FORMAT)
    failures = [formatter.format(r) for r in caplog.records if r.levelno == logging.ERROR]
    assert any(url in line for line in failures)
