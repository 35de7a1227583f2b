"""Deduplicating JSON-file store that accumulates places across runs."""

from __future__ import annotations

import json
import threading
from pathlib import Path
from typing import Any, Iterable

from pydantic import ValidationError

from placescout.errors import StoreError
from placescout.extractors.schemas import ExtractedRecord, utc_now_iso
from placescout.logging_config import get_logger
from placescout.storage.export import write_text_atomic

LOGGER = get_logger(__name__)

DEFAULT_DB_PATH = Path("data/database.json")


def _read_document(path: Path) -> dict[str, Any] | None:
    if not path.exists():
        return None
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        raise StoreError(f"Failed to load database: {exc}", url=str(path)) from exc
    if not isinstance(payload, dict) or not isinstance(payload.get("places"), list):
        raise StoreError("Database file has no places list", url=str(path))
    return payload


def _write_document(path: Path, document: dict[str, Any]) -> None:
    try:
        write_text_atomic(path, json.dumps(document, indent=2, ensure_ascii=False))
    except OSError as exc:
        raise StoreError(f"Failed to save database: {exc}", url=str(path)) from exc


class PlaceStore:
    """Places keyed by website, loaded on open and rewritten whole on every mutation.

    All reads and writes go through one re-entrant lock so concurrent sessions in the
    same process cannot interleave a load/mutate/save cycle. Storage faults are logged
    and leave the in-memory view intact.
    """

    def __init__(self, path: Path | str = DEFAULT_DB_PATH) -> None:
        self.path = Path(path)
        self._lock = threading.RLock()
        self._places: list[ExtractedRecord] = []
        self._last_updated = utc_now_iso()
        self._total_scraped = 0
        self._load()

    def _load(self) -> None:
        try:
            payload = _read_document(self.path)
        except StoreError as exc:
            LOGGER.error("%s", exc)
            payload = None
        if payload is None:
            return

        places: list[ExtractedRecord] = []
        for entry in payload["places"]:
            try:
                places.append(ExtractedRecord.model_validate(entry))
            except ValidationError as exc:
                LOGGER.warning("Skipping malformed stored place: %s", exc)
        self._places = places
        self._last_updated = str(payload.get("lastUpdated") or self._last_updated)
        try:
            self._total_scraped = int(payload.get("totalScraped") or len(places))
        except (TypeError, ValueError):
            self._total_scraped = len(places)

    def _save(self) -> None:
        self._last_updated = utc_now_iso()
        try:
            _write_document(self.path, self._document())
        except StoreError as exc:
            LOGGER.error("%s", exc)

    def _document(self) -> dict[str, Any]:
        return {
            "places": [place.to_dict() for place in self._places],
            "lastUpdated": self._last_updated,
            "totalScraped": self._total_scraped,
        }

    def _contains_website(self, website: str) -> bool:
        return any(place.website == website for place in self._places)

    def _append(self, record: ExtractedRecord) -> bool:
        if not record.is_complete or self._contains_website(record.website):
            return False
        self._places.append(record.model_copy(update={"scraped_at": utc_now_iso()}))
        self._total_scraped += 1
        return True

    def add(self, record: ExtractedRecord) -> bool:
        """Add one place unless its website is missing or already stored."""

        with self._lock:
            added = self._append(record)
            if added:
                self._save()
            return added

    def add_all(self, records: Iterable[ExtractedRecord]) -> int:
        """Add places in order; return how many were actually new."""

        with self._lock:
            added = sum(1 for record in records if self._append(record))
            if added:
                self._save()
            return added

    def all(self) -> list[ExtractedRecord]:
        with self._lock:
            return list(self._places)

    def count(self) -> int:
        with self._lock:
            return len(self._places)

    def stats(self) -> dict[str, Any]:
        with self._lock:
            return {
                "count": len(self._places),
                "lastUpdated": self._last_updated,
                "totalScraped": self._total_scraped,
            }

    def reset(self) -> None:
        """Clear every place; the backing file is rewritten, not deleted."""

        with self._lock:
            self._places = []
            self._total_scraped = 0
            self._save()
        LOGGER.info("Database has been reset")

    def search(self, query: str) -> list[ExtractedRecord]:
        """Case-insensitive substring match on name, keyword and locality."""

        needle = query.lower()
        with self._lock:
            return [
                place
                for place in self._places
                if needle in place.name.lower()
                or needle in (place.source_keyword or "").lower()
                or needle in place.locality.lower()
            ]
