import csv
import io
import json
from datetime import datetime, timezone

from placescout.extractors.schemas import ExtractedRecord
from placescout.storage.export import (
    export_results,
    records_to_csv,
    records_to_json,
    save_partial_results,
    timestamp_slug,
)


def _records() -> list[ExtractedRecord]:
    return [
        ExtractedRecord(name="A, B", locality="Austin", category="Bar", website="https://ab.example", source_keyword="bars"),
        ExtractedRecord(name='The "Best" Cafe', locality="Austin", category="Cafe", website="https://best.example"),
    ]


def test_csv_quotes_commas_and_round_trips() -> None:
    text = records_to_csv(_records())

    lines = text.splitlines()
    assert lines[0] == "name,city,category,website"
    assert lines[1].startswith('"A, B",Austin')
    assert lines[2].startswith('"The ""Best"" Cafe"')

    rows = list(csv.reader(io.StringIO(text)))
    assert rows[1][0] == "A, B"
    assert rows[2][0] == 'The "Best" Cafe'


def test_csv_optional_columns() -> None:
    text = records_to_csv(_records(), include_keyword=True, include_scraped_at=True)

    rows = list(csv.reader(io.StringIO(text)))
    assert rows[0] == ["name", "city", "category", "website", "keyword", "scrapedAt"]
    assert rows[1][4] == "bars"
    assert rows[2][4] == ""


def test_json_uses_wire_names() -> None:
    payload = json.loads(records_to_json(_records()))

    assert payload[0] == {
        "name": "A, B",
        "city": "Austin",
        "category": "Bar",
        "website": "https://ab.example",
        "keyword": "bars",
    }


def test_export_results_writes_requested_formats(tmp_path) -> None:
    written = export_results(_records(), "google-maps-test", tmp_path / "out", "both")

    assert [path.name for path in written] == ["google-maps-test.json", "google-maps-test.csv"]
    csv_text = (tmp_path / "out" / "google-maps-test.csv").read_text(encoding="utf-8")
    assert csv_text.splitlines()[0] == "name,city,category,website,keyword"

    only_csv = export_results(_records(), "csv-only", tmp_path / "out", "csv")
    assert [path.suffix for path in only_csv] == [".csv"]


def test_partial_snapshot(tmp_path) -> None:
    path = save_partial_results(_records(), "session_1", tmp_path)

    assert path == tmp_path / "session_1_partial.json"
    assert len(json.loads(path.read_text(encoding="utf-8"))) == 2


def test_partial_snapshot_failure_is_swallowed(tmp_path) -> None:
    blocker = tmp_path / "blocked"
    blocker.write_text("x", encoding="utf-8")

    assert save_partial_results(_records(), "session_1", blocker) is None


def test_timestamp_slug_is_filename_safe() -> None:
    slug = timestamp_slug(datetime(2024, 5, 1, 12, 30, 15, 250000, tzinfo=timezone.utc))

    assert slug == "2024-05-01T12-30-15-250Z"
