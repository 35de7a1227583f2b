"""Ordered selector-fallback resolution for fields on pages with unstable markup.

A field is described by a prioritised list of strategies. Each strategy proposes raw
candidate values; the first candidate that survives the field's transform and
plausibility check wins and later strategies are never queried.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Sequence

from placescout.extractors.dom_utils import query_first, safe_get_attribute, text_content_safe
from placescout.logging_config import get_logger
from placescout.normalizers import clean_text

LOGGER = get_logger(__name__)

Check = Callable[[str], bool]
Transform = Callable[[str], str]


class ExtractionStrategy(ABC):
    """One way of reading a value off the page."""

    accept: Check | None = None

    @abstractmethod
    async def candidates(self, page: Any) -> list[str]:
        """Return raw candidate values, best first. Empty when nothing matched."""

    def describe(self) -> str:
        return type(self).__name__


@dataclass(frozen=True)
class AttributeStrategy(ExtractionStrategy):
    """Read an attribute of the first element matching ``selector``."""

    selector: str
    attribute: str
    accept: Check | None = None

    async def candidates(self, page: Any) -> list[str]:
        handle = await query_first(page, self.selector)
        value = await safe_get_attribute(handle, self.attribute)
        return [value] if value else []

    def describe(self) -> str:
        return f"{self.selector}@{self.attribute}"


@dataclass(frozen=True)
class TextStrategy(ExtractionStrategy):
    """Read the text content of the first element matching ``selector``."""

    selector: str
    accept: Check | None = None

    async def candidates(self, page: Any) -> list[str]:
        handle = await query_first(page, self.selector)
        text = await text_content_safe(handle)
        return [text] if text else []

    def describe(self) -> str:
        return self.selector


@dataclass(frozen=True)
class ScanStrategy(ExtractionStrategy):
    """Evaluate a script in the page that returns one string or a list of strings."""

    script: str
    args: Any = None
    accept: Check | None = None

    async def candidates(self, page: Any) -> list[str]:
        if self.args is None:
            value = await page.evaluate(self.script)
        else:
            value = await page.evaluate(self.script, self.args)
        if isinstance(value, str):
            return [value] if value else []
        if isinstance(value, (list, tuple)):
            return [item for item in value if isinstance(item, str) and item]
        return []

    def describe(self) -> str:
        return "dom-scan"


async def resolve(
    page: Any,
    strategies: Sequence[ExtractionStrategy],
    *,
    transform: Transform = clean_text,
    accept: Check = bool,
) -> str | None:
    """Return the first plausible value produced by *strategies*, or ``None``.

    A strategy's own ``accept`` check overrides the field-level one. Strategy errors
    count as "no value".
    """

    for strategy in strategies:
        try:
            raw_values = await strategy.candidates(page)
        except Exception as exc:
            LOGGER.debug("Strategy %s failed: %s", strategy.describe(), exc)
            continue

        check = strategy.accept or accept
        for raw in raw_values:
            value = transform(raw)
            if value and check(value):
                LOGGER.debug("Resolved via %s", strategy.describe())
                return value

    return None
