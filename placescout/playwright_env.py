"""Centralised helpers for Playwright launch, context setup and pacing knobs."""

from __future__ import annotations

import os
import shlex
from functools import lru_cache
from typing import Any

from playwright.async_api import Browser, BrowserContext, Playwright
from playwright_stealth import Stealth

_FALSE_VALUES = {"0", "false", "no", "off"}

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)


def _as_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() not in _FALSE_VALUES


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None:
        return default
    try:
        return float(raw.strip())
    except ValueError:
        return default


def _bounds(prefix: str, default_min: int, default_max: int) -> tuple[int, int]:
    min_ms = max(_env_int(f"{prefix}_MIN_MS", default_min), 0)
    max_ms = max(_env_int(f"{prefix}_MAX_MS", default_max), 0)
    if max_ms < min_ms:
        max_ms = min_ms
    return min_ms, max_ms


def headless_enabled() -> bool:
    """Return True if Playwright should run in headless mode."""

    return _as_bool(os.getenv("PLACESCOUT_HEADLESS"), True)


def stealth_enabled() -> bool:
    """Return True when stealth evasion scripts should be applied."""

    return _as_bool(os.getenv("PLACESCOUT_STEALTH"), True)


def _languages() -> tuple[str, ...]:
    lang_env = os.getenv("PLACESCOUT_LANGS") or "en-US,en"
    langs = tuple(entry.strip() for entry in lang_env.split(",") if entry.strip())
    return langs or ("en-US", "en")


@lru_cache(maxsize=1)
def _stealth_instance() -> Stealth | None:
    if not stealth_enabled():
        return None
    return Stealth(
        navigator_languages_override=_languages()[:2],
        navigator_user_agent_override=user_agent(),
    )


def apply_stealth(playwright: Playwright) -> None:
    """Hook the provided Playwright object with stealth evasions when enabled."""

    instance = _stealth_instance()
    if instance is None:
        return
    instance.hook_playwright_context(playwright)


def user_agent() -> str:
    return (os.getenv("PLACESCOUT_USER_AGENT") or os.getenv("USER_AGENT") or DEFAULT_USER_AGENT).strip()


def _proxy_config() -> dict[str, str] | None:
    raw = os.getenv("PLACESCOUT_PROXY")
    if not raw:
        return None
    raw = raw.strip()
    proxy = {"server": raw if "://" in raw else f"http://{raw}"}
    username = os.getenv("PLACESCOUT_PROXY_USERNAME")
    password = os.getenv("PLACESCOUT_PROXY_PASSWORD")
    if username:
        proxy["username"] = username
    if password:
        proxy["password"] = password
    return proxy


def slow_mo_ms() -> int | None:
    value = _env_int("PLACESCOUT_SLOW_MO_MS", 50)
    return value if value > 0 else None


def launch_kwargs(headless: bool | None = None) -> dict[str, Any]:
    """Return kwargs passed to ``chromium.launch``.

    ``headless`` overrides the ``PLACESCOUT_HEADLESS`` environment value when given.
    """

    args = [
        "--disable-blink-features=AutomationControlled",
        "--disable-dev-shm-usage",
        "--no-sandbox",
        "--disable-setuid-sandbox",
        "--disable-web-security",
        "--disable-features=IsolateOrigins,site-per-process",
    ]
    extra_args = os.getenv("PLACESCOUT_CHROMIUM_ARGS")
    if extra_args:
        args.extend(shlex.split(extra_args))

    kwargs: dict[str, Any] = {
        "headless": headless_enabled() if headless is None else headless,
        "args": args,
    }

    channel = os.getenv("PLACESCOUT_BROWSER_CHANNEL")
    if channel:
        kwargs["channel"] = channel

    proxy = _proxy_config()
    if proxy:
        kwargs["proxy"] = proxy

    slow_mo = slow_mo_ms()
    if slow_mo:
        kwargs["slow_mo"] = slow_mo

    return kwargs


def context_kwargs() -> dict[str, Any]:
    """Return kwargs passed to ``browser.new_context``."""

    return {
        "viewport": {
            "width": _env_int("PLACESCOUT_VIEWPORT_WIDTH", 1920),
            "height": _env_int("PLACESCOUT_VIEWPORT_HEIGHT", 1080),
        },
        "user_agent": user_agent(),
        "locale": os.getenv("PLACESCOUT_LOCALE", "en-US"),
        "timezone_id": os.getenv("PLACESCOUT_TIMEZONE", "America/New_York"),
        "geolocation": {
            "latitude": _env_float("PLACESCOUT_GEO_LAT", 40.7128),
            "longitude": _env_float("PLACESCOUT_GEO_LON", -74.0060),
        },
        "permissions": ["geolocation"],
    }


async def launch_browser(playwright: Playwright, *, headless: bool | None = None) -> Browser:
    """Launch Chromium according to env overrides."""

    return await playwright.chromium.launch(**launch_kwargs(headless))


async def new_context(browser: Browser) -> BrowserContext:
    return await browser.new_context(**context_kwargs())


async def close_browser(browser: Browser | None) -> None:
    """Close the provided browser without raising."""

    if browser is None:
        return
    try:
        await browser.close()
    except Exception:
        pass


def apply_wait_policy(min_ms: int, max_ms: int) -> tuple[int, int]:
    """Apply global wait overrides + multiplier for human_wait() calls."""

    min_override = _env_int("PLACESCOUT_WAIT_MIN_MS", min_ms)
    max_override = _env_int("PLACESCOUT_WAIT_MAX_MS", max_ms)
    multiplier = max(_env_float("PLACESCOUT_WAIT_MULTIPLIER", 1.0), 0.0)

    scaled_min = int(min_override * multiplier)
    scaled_max = int(max_override * multiplier)
    if scaled_max < scaled_min:
        scaled_max = scaled_min
    return scaled_min, scaled_max


def scroll_delay_bounds() -> tuple[int, int]:
    """Pause between feed scrolls."""

    return _bounds("PLACESCOUT_SCROLL_DELAY", 800, 1500)


def item_delay_bounds() -> tuple[int, int]:
    """Pause between detail-page visits."""

    return _bounds("PLACESCOUT_ITEM_DELAY", 1000, 3000)


def consent_delay_bounds() -> tuple[int, int]:
    return _bounds("PLACESCOUT_CONSENT_DELAY", 500, 1000)


def feed_settle_bounds() -> tuple[int, int]:
    """Pause after the results feed first appears."""

    return _bounds("PLACESCOUT_FEED_SETTLE", 1000, 2000)
