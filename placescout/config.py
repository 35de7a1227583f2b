"""Configuration loading for placescout."""

from __future__ import annotations

import os
from copy import deepcopy
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import yaml

from placescout.logging_config import get_logger

LOGGER = get_logger(__name__)

DEFAULT_CONFIG_PATH = Path("placescout/config.yml")

DEFAULT_CONFIG: dict[str, Any] = {
    "scrape": {
        "max_retries": 3,
        "navigation_timeout_ms": 60000,
        "selector_timeout_ms": 15000,
        "results_timeout_ms": 5000,
        "max_scroll_attempts": 100,
        "stable_count_threshold": 10,
        "partial_save_interval": 10,
    },
    "output": {
        "dir": "output",
        "database_path": "data/database.json",
    },
    "server": {
        "host": "0.0.0.0",
        "port": 3000,
    },
}

# env var -> (section, key)
_ENV_OVERRIDES: dict[str, tuple[str, str]] = {
    "NAVIGATION_TIMEOUT": ("scrape", "navigation_timeout_ms"),
    "SELECTOR_TIMEOUT": ("scrape", "selector_timeout_ms"),
    "MAX_RETRIES": ("scrape", "max_retries"),
    "PLACESCOUT_MAX_SCROLL_ATTEMPTS": ("scrape", "max_scroll_attempts"),
    "PLACESCOUT_STABLE_THRESHOLD": ("scrape", "stable_count_threshold"),
    "PLACESCOUT_PARTIAL_SAVE_INTERVAL": ("scrape", "partial_save_interval"),
    "PLACESCOUT_OUTPUT_DIR": ("output", "dir"),
    "PLACESCOUT_DATABASE_PATH": ("output", "database_path"),
    "PORT": ("server", "port"),
}


def _deep_merge(default: Any, override: Any) -> Any:
    if not isinstance(default, dict) or not isinstance(override, dict):
        return deepcopy(override)

    merged: dict[str, Any] = deepcopy(default)
    for key, value in override.items():
        if key in merged and isinstance(merged[key], dict) and isinstance(value, dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = deepcopy(value)
    return merged


def _apply_env_overrides(config: dict[str, Any]) -> dict[str, Any]:
    for env_name, (section, key) in _ENV_OVERRIDES.items():
        raw = os.getenv(env_name)
        if raw is None or not raw.strip():
            continue
        default_value = DEFAULT_CONFIG[section][key]
        if isinstance(default_value, int):
            try:
                value: Any = int(raw.strip())
            except ValueError:
                LOGGER.warning("Ignoring non-integer %s=%r", env_name, raw)
                continue
        else:
            value = raw.strip()
        config.setdefault(section, {})[key] = value
    return config


def load_config(path: Path | None = None) -> dict[str, Any]:
    """Load YAML configuration merged over defaults, then apply env overrides."""

    path = path or DEFAULT_CONFIG_PATH
    if path.exists():
        with path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    else:
        LOGGER.debug("Configuration file %s not found; using defaults", path)
        data = {}

    merged = _deep_merge(DEFAULT_CONFIG, data) if data else deepcopy(DEFAULT_CONFIG)
    return _apply_env_overrides(merged)


@dataclass(frozen=True)
class ScrapeSettings:
    """Tunables for navigation, discovery and checkpointing."""

    max_retries: int = 3
    navigation_timeout_ms: int = 60000
    selector_timeout_ms: int = 15000
    results_timeout_ms: int = 5000
    max_scroll_attempts: int = 100
    stable_count_threshold: int = 10
    partial_save_interval: int = 10
    output_dir: Path = Path("output")
    database_path: Path = Path("data/database.json")

    @classmethod
    def from_config(cls, config: dict[str, Any]) -> "ScrapeSettings":
        scrape = config.get("scrape", {})
        output = config.get("output", {})
        defaults = cls()
        return cls(
            max_retries=max(1, int(scrape.get("max_retries", defaults.max_retries))),
            navigation_timeout_ms=int(scrape.get("navigation_timeout_ms", defaults.navigation_timeout_ms)),
            selector_timeout_ms=int(scrape.get("selector_timeout_ms", defaults.selector_timeout_ms)),
            results_timeout_ms=int(scrape.get("results_timeout_ms", defaults.results_timeout_ms)),
            max_scroll_attempts=max(1, int(scrape.get("max_scroll_attempts", defaults.max_scroll_attempts))),
            stable_count_threshold=max(
                1, int(scrape.get("stable_count_threshold", defaults.stable_count_threshold))
            ),
            partial_save_interval=max(
                1, int(scrape.get("partial_save_interval", defaults.partial_save_interval))
            ),
            output_dir=Path(output.get("dir", defaults.output_dir)),
            database_path=Path(output.get("database_path", defaults.database_path)),
        )
