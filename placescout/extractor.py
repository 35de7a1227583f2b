"""Place detail extraction: one listing identifier in, one record out."""

from __future__ import annotations

from typing import Any

import placescout.selectors as selectors
from placescout.extractors.schemas import ExtractedRecord
from placescout.logging_config import get_logger
from placescout.navigation import NavigationController
from placescout.normalizers import (
    NOT_AVAILABLE,
    clean_text,
    extract_actual_url,
    is_plausible_category,
    is_plausible_name,
    is_plausible_website,
    is_scanned_category,
    parse_locality,
    resolve_identifier,
)
from placescout.resolver import AttributeStrategy, ScanStrategy, TextStrategy, resolve

LOGGER = get_logger(__name__)

_BUTTON_TEXTS_JS = (
    "() => Array.from(document.querySelectorAll('button')).map((el) => el.textContent || '')"
)

NAME_STRATEGIES = tuple(TextStrategy(selector) for selector in selectors.NAME)

CATEGORY_STRATEGIES = (
    *(TextStrategy(selector, accept=is_plausible_category) for selector in selectors.CATEGORY),
    ScanStrategy(_BUTTON_TEXTS_JS, accept=is_scanned_category),
)

LOCALITY_STRATEGIES = tuple(TextStrategy(selector) for selector in selectors.ADDRESS)

WEBSITE_STRATEGIES = tuple(
    AttributeStrategy(selector, "href")
    for selector in (*selectors.WEBSITE, selectors.WEBSITE_BUTTON)
)


def _locality_from_address(raw: str) -> str:
    return parse_locality(clean_text(raw))


def _website_from_href(raw: str) -> str:
    return extract_actual_url(raw.strip())


def is_complete(record: ExtractedRecord | None) -> bool:
    """Only records with a usable off-platform website are kept."""

    return record is not None and record.is_complete


class RecordExtractor:
    """Visits a listing's detail page and resolves its four fields."""

    def __init__(self, page: Any, navigator: NavigationController) -> None:
        self.page = page
        self.navigator = navigator

    async def extract(self, identifier: str, *, keyword: str | None = None) -> ExtractedRecord | None:
        """Return the record for *identifier*, or ``None`` when the page never loaded.

        Fields that cannot be resolved are set to ``NOT_AVAILABLE``.
        """

        url = resolve_identifier(identifier)
        if not await self.navigator.navigate(url, detail_page=True):
            LOGGER.error("Failed to load place page: %s", url)
            return None

        name = await resolve(self.page, NAME_STRATEGIES, accept=is_plausible_name)
        category = await resolve(self.page, CATEGORY_STRATEGIES, accept=is_plausible_category)
        locality = await resolve(self.page, LOCALITY_STRATEGIES, transform=_locality_from_address)
        website = await resolve(
            self.page,
            WEBSITE_STRATEGIES,
            transform=_website_from_href,
            accept=is_plausible_website,
        )

        return ExtractedRecord(
            name=name or NOT_AVAILABLE,
            locality=locality or NOT_AVAILABLE,
            category=category or NOT_AVAILABLE,
            website=website or NOT_AVAILABLE,
            source_keyword=keyword,
        )
