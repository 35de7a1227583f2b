"""JSON/CSV rendering and file export for extracted records."""

from __future__ import annotations

import csv
import io
import json
import os
from datetime import datetime, timezone
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Iterable, Literal

from placescout.extractors.schemas import ExtractedRecord
from placescout.logging_config import get_logger

LOGGER = get_logger(__name__)

CSV_HEADER = ["name", "city", "category", "website"]
KEYWORD_COLUMN = "keyword"
SCRAPED_AT_COLUMN = "scrapedAt"

ExportFormat = Literal["json", "csv", "both"]


def csv_header(*, include_keyword: bool = False, include_scraped_at: bool = False) -> list[str]:
    header = list(CSV_HEADER)
    if include_keyword:
        header.append(KEYWORD_COLUMN)
    if include_scraped_at:
        header.append(SCRAPED_AT_COLUMN)
    return header


def records_to_json(records: Iterable[ExtractedRecord]) -> str:
    """Pretty-printed JSON array of records using wire field names."""

    return json.dumps([record.to_dict() for record in records], indent=2, ensure_ascii=False)


def records_to_csv(
    records: Iterable[ExtractedRecord],
    *,
    include_keyword: bool = False,
    include_scraped_at: bool = False,
) -> str:
    """Render records as CSV; fields with commas or quotes are quoted, quotes doubled."""

    header = csv_header(include_keyword=include_keyword, include_scraped_at=include_scraped_at)
    buffer = io.StringIO()
    writer = csv.writer(buffer, lineterminator="\n")
    writer.writerow(header)
    for record in records:
        row = record.to_dict()
        writer.writerow([row.get(column) or "" for column in header])
    return buffer.getvalue()


def write_text_atomic(path: Path, content: str) -> None:
    """Replace *path* with *content* in one step via a sibling temp file."""

    os.makedirs(path.parent, exist_ok=True)
    with NamedTemporaryFile(
        mode="w", newline="", encoding="utf-8", dir=str(path.parent), delete=False
    ) as handle:
        handle.write(content)
        handle.flush()
        os.fsync(handle.fileno())
        tmp_name = handle.name

    os.replace(tmp_name, path)


def timestamp_slug(moment: datetime | None = None) -> str:
    moment = moment or datetime.now(timezone.utc)
    return moment.isoformat(timespec="milliseconds").replace("+00:00", "Z").replace(":", "-").replace(".", "-")


def export_results(
    records: list[ExtractedRecord],
    filename: str,
    output_dir: Path,
    fmt: ExportFormat = "both",
) -> list[Path]:
    """Write ``<filename>.json`` and/or ``<filename>.csv`` under *output_dir*."""

    written: list[Path] = []
    if fmt in ("json", "both"):
        path = output_dir / f"{filename}.json"
        write_text_atomic(path, records_to_json(records))
        written.append(path)
        LOGGER.info("Data exported to: %s", path)
    if fmt in ("csv", "both"):
        include_keyword = any(record.source_keyword for record in records)
        path = output_dir / f"{filename}.csv"
        write_text_atomic(path, records_to_csv(records, include_keyword=include_keyword))
        written.append(path)
        LOGGER.info("Data exported to: %s", path)
    return written


def save_partial_results(records: list[ExtractedRecord], prefix: str, output_dir: Path) -> Path | None:
    """Checkpoint the current result list; failures are logged and swallowed."""

    path = output_dir / f"{prefix}_partial.json"
    try:
        write_text_atomic(path, records_to_json(records))
    except OSError as exc:
        LOGGER.error("Failed to save partial results to %s: %s", path, exc)
        return None
    LOGGER.debug("Partial results saved to: %s", path)
    return path
