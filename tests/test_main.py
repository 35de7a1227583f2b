import pytest

pytest.importorskip("uvicorn")

from placescout.main import build_jobs, parse_args


def test_parse_args_collects_keywords() -> None:
    args = parse_args(["-k", "pizza", "--keyword", " tacos ", "--location", "Austin", "--max-results", "5", "--headed"])

    assert args.keywords == ["pizza", "tacos"]
    assert args.location == "Austin"
    assert args.max_results == 5
    assert args.headed is True
    assert args.fmt == "both"


def test_parse_args_requires_keyword_unless_serving() -> None:
    with pytest.raises(SystemExit):
        parse_args([])
    assert parse_args(["--serve"]).serve is True
    assert parse_args(["--reset-database"]).reset_database is True


def test_parse_args_rejects_negative_limit() -> None:
    with pytest.raises(SystemExit):
        parse_args(["-k", "pizza", "--max-results", "-1"])


def test_build_jobs_with_and_without_location() -> None:
    with_location = build_jobs(parse_args(["-k", "pizza", "-l", "Austin", "-m", "3"]))
    assert [job.query for job in with_location] == ["pizza in Austin"]
    assert with_location[0].result_limit == 3

    single_query = build_jobs(parse_args(["-k", "pizza near me"]))
    assert single_query[0].query == "pizza near me"
    assert single_query[0].result_limit is None


def test_serve_uses_the_chosen_config(tmp_path, monkeypatch) -> None:
    pytest.importorskip("fastapi")
    from placescout import main as main_module

    for name in ("PLACESCOUT_DATABASE_PATH", "PLACESCOUT_OUTPUT_DIR", "PORT"):
        monkeypatch.delenv(name, raising=False)
    database = tmp_path / "custom_db.json"
    config_path = tmp_path / "custom.yml"
    config_path.write_text(
        f"output:\n  dir: {tmp_path / 'out'}\n  database_path: {database}\nserver:\n  port: 8123\n",
        encoding="utf-8",
    )
    served: dict = {}

    def fake_run(app, **kwargs) -> None:
        served["app"] = app
        served.update(kwargs)

    monkeypatch.setattr(main_module.uvicorn, "run", fake_run)

    main_module.main(["--serve", "--config", str(config_path)])

    assert served["port"] == 8123
    assert served["app"].state.store.path == database
