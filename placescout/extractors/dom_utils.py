"""Helper utilities for pacing and safely interacting with page DOM content."""

from __future__ import annotations

import asyncio
import random
from typing import Any

from placescout.playwright_env import apply_wait_policy

SCROLL_MIN = 400
SCROLL_MAX = 600


def random_between(min_value: int, max_value: int) -> int:
    """Return a random integer between the bounds, inclusive."""

    if max_value < min_value:
        max_value = min_value
    return random.randint(min_value, max_value)


def scroll_amount() -> int:
    """Randomised scroll step for the results feed."""

    return random_between(SCROLL_MIN, SCROLL_MAX)


async def human_wait(
    min_ms: int = 350,
    max_ms: int = 900,
    *,
    obey_policy: bool = True,
) -> None:
    """Sleep for a random, human-like interval between the provided bounds."""

    if min_ms < 0:
        min_ms = 0
    if max_ms < min_ms:
        max_ms = min_ms

    if obey_policy:
        min_ms, max_ms = apply_wait_policy(min_ms, max_ms)

    delay = random.uniform(min_ms / 1000, max_ms / 1000)
    await asyncio.sleep(delay)


async def text_content_safe(handle: Any) -> str | None:
    """Return the text content for *handle* while ignoring DOM failures."""

    if handle is None:
        return None

    try:
        result = await handle.text_content()
    except Exception:
        return None

    return result


async def safe_get_attribute(handle: Any, attribute: str) -> str | None:
    if handle is None:
        return None
    try:
        value = await handle.get_attribute(attribute)
    except Exception:
        return None
    if value is None:
        return None
    trimmed = value.strip()
    return trimmed or None


async def query_first(page: Any, selector: str) -> Any | None:
    """Return the first element matching *selector*, or ``None``."""

    try:
        return await page.query_selector(selector)
    except Exception:
        return None
