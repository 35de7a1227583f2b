from pathlib import Path

from placescout.config import DEFAULT_CONFIG, ScrapeSettings, load_config


def test_defaults_when_file_missing(tmp_path, monkeypatch) -> None:
    for name in ("NAVIGATION_TIMEOUT", "SELECTOR_TIMEOUT", "MAX_RETRIES", "PORT"):
        monkeypatch.delenv(name, raising=False)

    config = load_config(tmp_path / "missing.yml")

    assert config == DEFAULT_CONFIG
    assert config is not DEFAULT_CONFIG


def test_yaml_is_merged_over_defaults(tmp_path) -> None:
    path = tmp_path / "config.yml"
    path.write_text("scrape:\n  max_scroll_attempts: 20\noutput:\n  dir: exports\n", encoding="utf-8")

    config = load_config(path)

    assert config["scrape"]["max_scroll_attempts"] == 20
    assert config["scrape"]["stable_count_threshold"] == 10
    assert config["output"]["dir"] == "exports"
    assert config["output"]["database_path"] == "data/database.json"


def test_env_overrides_win(tmp_path, monkeypatch) -> None:
    monkeypatch.setenv("NAVIGATION_TIMEOUT", "30000")
    monkeypatch.setenv("MAX_RETRIES", "not-a-number")
    monkeypatch.setenv("PLACESCOUT_DATABASE_PATH", "/tmp/places.json")

    config = load_config(tmp_path / "missing.yml")

    assert config["scrape"]["navigation_timeout_ms"] == 30000
    assert config["scrape"]["max_retries"] == DEFAULT_CONFIG["scrape"]["max_retries"]
    assert config["output"]["database_path"] == "/tmp/places.json"


def test_scrape_settings_from_config() -> None:
    config = {
        "scrape": {"max_retries": 0, "partial_save_interval": 5},
        "output": {"dir": "out", "database_path": "db/places.json"},
    }

    settings = ScrapeSettings.from_config(config)

    assert settings.max_retries == 1
    assert settings.partial_save_interval == 5
    assert settings.navigation_timeout_ms == 60000
    assert settings.output_dir == Path("out")
    assert settings.database_path == Path("db/places.json")
